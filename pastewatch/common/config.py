"""
Configuration Management for Pastewatch

Loads configuration from ~/.pastewatch/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List

# Default config paths
CONFIG_DIR = Path.home() / ".pastewatch"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOGS_DIR = CONFIG_DIR / "logs"
LOG_FILE_NAME = "pastewatch.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _default_language_factors() -> Dict[str, float]:
    return {"java": 1.2}


def _default_reminders() -> List["ReminderConfig"]:
    return [
        ReminderConfig(
            name="break",
            interval_ms=50 * 60 * 1000,
            message="Time for a quick break! Stretch those fingers and grab some water!",
        ),
        ReminderConfig(
            name="blink",
            interval_ms=20 * 60 * 1000,
            message="Remember to blink! Your eyes need a break from the screen.",
        ),
    ]


@dataclass
class MonitorConfig:
    """Bulk insert classification thresholds and HTTP settings"""
    port: int = 8765
    bulk_min_chars: int = 300  # ~ a few lines of code
    bulk_min_lines: int = 8  # multi-line insert
    typing_max_chars: int = 32  # likely human keystrokes
    typing_max_fragments: int = 3
    preview_max_chars: int = 4000
    notification_queue_size: int = 200


@dataclass
class EstimatorConfig:
    """Review time heuristics"""
    per_char_ms: float = 15.0
    per_line_ms: float = 150.0
    min_ms: float = 1500.0
    max_ms: float = 20000.0
    language_factors: Dict[str, float] = field(default_factory=_default_language_factors)


@dataclass
class ReminderConfig:
    """One recurring session milestone"""
    name: str
    interval_ms: int
    message: str = ""


@dataclass
class SchedulerConfig:
    """Session milestone reminders"""
    reminders: List[ReminderConfig] = field(default_factory=_default_reminders)


@dataclass
class LLMConfig:
    """Evaluator LLM provider configuration"""
    provider: str = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"
    timeout_seconds: float = 20.0
    max_tokens: int = 512
    max_payload_chars: int = 2_000_000


@dataclass
class PastewatchConfig:
    """Main Pastewatch configuration"""
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    estimator: EstimatorConfig = field(default_factory=EstimatorConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_monitor_config(data: dict) -> MonitorConfig:
    """Parse monitor section from config dict"""
    monitor_data = data.get("monitor", {})
    defaults = MonitorConfig()
    return MonitorConfig(
        port=monitor_data.get("port", defaults.port),
        bulk_min_chars=monitor_data.get("bulk_min_chars", defaults.bulk_min_chars),
        bulk_min_lines=monitor_data.get("bulk_min_lines", defaults.bulk_min_lines),
        typing_max_chars=monitor_data.get("typing_max_chars", defaults.typing_max_chars),
        typing_max_fragments=monitor_data.get("typing_max_fragments", defaults.typing_max_fragments),
        preview_max_chars=monitor_data.get("preview_max_chars", defaults.preview_max_chars),
        notification_queue_size=monitor_data.get(
            "notification_queue_size", defaults.notification_queue_size
        ),
    )


def _parse_estimator_config(data: dict) -> EstimatorConfig:
    """Parse estimator section from config dict"""
    estimator_data = data.get("estimator", {})
    defaults = EstimatorConfig()
    factors = estimator_data.get("language_factors", defaults.language_factors)
    return EstimatorConfig(
        per_char_ms=float(estimator_data.get("per_char_ms", defaults.per_char_ms)),
        per_line_ms=float(estimator_data.get("per_line_ms", defaults.per_line_ms)),
        min_ms=float(estimator_data.get("min_ms", defaults.min_ms)),
        max_ms=float(estimator_data.get("max_ms", defaults.max_ms)),
        language_factors={str(k).lower(): float(v) for k, v in factors.items()},
    )


def _parse_scheduler_config(data: dict) -> SchedulerConfig:
    """Parse scheduler section from config dict.

    A missing ``reminders`` key keeps the built-in break/blink reminders;
    an explicit empty list disables them.
    """
    scheduler_data = data.get("scheduler", {})
    if "reminders" not in scheduler_data:
        return SchedulerConfig()

    return SchedulerConfig(
        reminders=[
            ReminderConfig(
                name=item["name"],
                interval_ms=int(item["interval_ms"]),
                message=item.get("message", ""),
            )
            for item in scheduler_data["reminders"]
        ]
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        timeout_seconds=float(llm_data.get("timeout_seconds", defaults.timeout_seconds)),
        max_tokens=int(llm_data.get("max_tokens", defaults.max_tokens)),
        max_payload_chars=int(llm_data.get("max_payload_chars", defaults.max_payload_chars)),
    )


def load_config() -> PastewatchConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.pastewatch/config.json)
    3. Default values
    """
    config = PastewatchConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.monitor = _parse_monitor_config(data)
            config.estimator = _parse_estimator_config(data)
            config.scheduler = _parse_scheduler_config(data)
            config.llm = _parse_llm_config(data)
        except (json.JSONDecodeError, IOError, KeyError, ValueError) as e:
            print(f"[Config] Warning: Failed to load config file: {e}")

    # Environment variable overrides
    if os.getenv("PASTEWATCH_PORT"):
        config.monitor.port = int(os.getenv("PASTEWATCH_PORT"))
    if os.getenv("PASTEWATCH_BULK_CHARS"):
        config.monitor.bulk_min_chars = int(os.getenv("PASTEWATCH_BULK_CHARS"))
    if os.getenv("PASTEWATCH_BULK_LINES"):
        config.monitor.bulk_min_lines = int(os.getenv("PASTEWATCH_BULK_LINES"))
    if os.getenv("PASTEWATCH_LLM_TIMEOUT"):
        config.llm.timeout_seconds = float(os.getenv("PASTEWATCH_LLM_TIMEOUT"))

    # LLM env var overrides (track env-sourced keys)
    _env_llm_map = {
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "PASTEWATCH_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    return config


def save_config(config: PastewatchConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    _llm_api_key_fields = {
        "anthropic_api_key", "openai_api_key", "google_api_key",
    }
    llm_section = {
        "provider": config.llm.provider,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
        "timeout_seconds": config.llm.timeout_seconds,
        "max_tokens": config.llm.max_tokens,
        "max_payload_chars": config.llm.max_payload_chars,
    }
    for key in _llm_api_key_fields:
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "monitor": {
            "port": config.monitor.port,
            "bulk_min_chars": config.monitor.bulk_min_chars,
            "bulk_min_lines": config.monitor.bulk_min_lines,
            "typing_max_chars": config.monitor.typing_max_chars,
            "typing_max_fragments": config.monitor.typing_max_fragments,
            "preview_max_chars": config.monitor.preview_max_chars,
            "notification_queue_size": config.monitor.notification_queue_size,
        },
        "estimator": {
            "per_char_ms": config.estimator.per_char_ms,
            "per_line_ms": config.estimator.per_line_ms,
            "min_ms": config.estimator.min_ms,
            "max_ms": config.estimator.max_ms,
            "language_factors": dict(config.estimator.language_factors),
        },
        "scheduler": {
            "reminders": [
                {
                    "name": r.name,
                    "interval_ms": r.interval_ms,
                    "message": r.message,
                }
                for r in config.scheduler.reminders
            ],
        },
        "llm": llm_section,
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)


def ensure_directories() -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    LOGS_DIR.mkdir(parents=True, exist_ok=True)


def setup_file_logging(logs_dir: Path = LOGS_DIR, level: int = logging.INFO) -> Path:
    """
    Send the "pastewatch" logger tree to a file under logs_dir.

    Calling it again with the same directory does not add a second handler.

    Returns:
        Path of the log file
    """
    log_path = Path(logs_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger("pastewatch")
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(log_path):
            return log_path

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return log_path

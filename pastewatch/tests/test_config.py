"""Tests for config loading, env overrides and saving."""

import json
import os
import pytest
from unittest.mock import patch


_ENV_VARS = [
    "PASTEWATCH_PORT", "PASTEWATCH_BULK_CHARS", "PASTEWATCH_BULK_LINES",
    "PASTEWATCH_LLM_TIMEOUT", "PASTEWATCH_LLM_PROVIDER",
    "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL", "OPENAI_API_KEY", "OPENAI_MODEL",
    "GOOGLE_API_KEY", "GEMINI_API_KEY", "GOOGLE_MODEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_monitor_defaults(self):
        from pastewatch.common.config import MonitorConfig
        cfg = MonitorConfig()
        assert cfg.bulk_min_chars == 300
        assert cfg.bulk_min_lines == 8
        assert cfg.typing_max_chars == 32
        assert cfg.typing_max_fragments == 3
        assert cfg.preview_max_chars == 4000

    def test_estimator_defaults(self):
        from pastewatch.common.config import EstimatorConfig
        cfg = EstimatorConfig()
        assert cfg.per_char_ms == 15.0
        assert cfg.per_line_ms == 150.0
        assert (cfg.min_ms, cfg.max_ms) == (1500.0, 20000.0)
        assert cfg.language_factors == {"java": 1.2}

    def test_default_reminders(self):
        from pastewatch.common.config import SchedulerConfig
        cfg = SchedulerConfig()
        names = {r.name: r.interval_ms for r in cfg.reminders}
        assert names == {"break": 50 * 60 * 1000, "blink": 20 * 60 * 1000}

    def test_default_configs_do_not_share_state(self):
        from pastewatch.common.config import EstimatorConfig
        a = EstimatorConfig()
        b = EstimatorConfig()
        a.language_factors["go"] = 1.1
        assert "go" not in b.language_factors

    def test_llm_defaults(self):
        from pastewatch.common.config import LLMConfig
        cfg = LLMConfig()
        assert cfg.provider == "anthropic"
        assert cfg.timeout_seconds == 20.0
        assert cfg.anthropic_api_key == ""


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        from pastewatch.common.config import load_config
        with patch("pastewatch.common.config.CONFIG_PATH", tmp_path / "nope.json"):
            cfg = load_config()
        assert cfg.monitor.bulk_min_chars == 300
        assert len(cfg.scheduler.reminders) == 2

    def test_load_sections_from_file(self, tmp_path):
        from pastewatch.common.config import load_config
        config_data = {
            "monitor": {"bulk_min_chars": 500, "port": 9000},
            "estimator": {"per_line_ms": 200, "language_factors": {"Rust": 1.3}},
            "scheduler": {"reminders": [{"name": "water", "interval_ms": 60000}]},
            "llm": {"provider": "openai", "openai_api_key": "sk-file", "timeout_seconds": 5},
        }
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(config_data))

        with patch("pastewatch.common.config.CONFIG_PATH", config_file):
            cfg = load_config()

        assert cfg.monitor.bulk_min_chars == 500
        assert cfg.monitor.bulk_min_lines == 8
        assert cfg.monitor.port == 9000
        assert cfg.estimator.per_line_ms == 200.0
        assert cfg.estimator.language_factors == {"rust": 1.3}
        assert [r.name for r in cfg.scheduler.reminders] == ["water"]
        assert cfg.scheduler.reminders[0].message == ""
        assert cfg.llm.provider == "openai"
        assert cfg.llm.openai_api_key == "sk-file"
        assert cfg.llm.timeout_seconds == 5.0

    def test_empty_reminder_list_disables_reminders(self, tmp_path):
        from pastewatch.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"scheduler": {"reminders": []}}))

        with patch("pastewatch.common.config.CONFIG_PATH", config_file):
            cfg = load_config()

        assert cfg.scheduler.reminders == []

    def test_invalid_json_falls_back_to_defaults(self, tmp_path, capsys):
        from pastewatch.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        with patch("pastewatch.common.config.CONFIG_PATH", config_file):
            cfg = load_config()

        assert cfg.monitor.bulk_min_chars == 300
        assert "Failed to load config file" in capsys.readouterr().out

    def test_env_overrides(self, tmp_path):
        from pastewatch.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"monitor": {"bulk_min_chars": 500}}))

        env = {
            "PASTEWATCH_BULK_CHARS": "250",
            "PASTEWATCH_PORT": "9999",
            "OPENAI_API_KEY": "sk-env",
            "PASTEWATCH_LLM_PROVIDER": "openai",
        }
        with patch("pastewatch.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, env, clear=False):
            cfg = load_config()

        assert cfg.monitor.bulk_min_chars == 250
        assert cfg.monitor.port == 9999
        assert cfg.llm.openai_api_key == "sk-env"
        assert cfg.llm.provider == "openai"
        assert "openai_api_key" in cfg._env_sourced_keys

    def test_gemini_api_key_env_var(self, tmp_path):
        from pastewatch.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{}")

        with patch("pastewatch.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, {"GEMINI_API_KEY": "gem-key"}, clear=False):
            cfg = load_config()

        assert cfg.llm.google_api_key == "gem-key"


class TestSaveConfig:
    def test_save_omits_env_sourced_keys(self, tmp_path):
        from pastewatch.common.config import load_config, save_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{}")

        with patch("pastewatch.common.config.CONFIG_PATH", config_file), \
             patch("pastewatch.common.config.CONFIG_DIR", tmp_path), \
             patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-from-env"}, clear=False):
            cfg = load_config()
            save_config(cfg)

        saved = json.loads(config_file.read_text())
        assert saved["llm"]["anthropic_api_key"] == ""

    def test_save_round_trips_file_values(self, tmp_path):
        from pastewatch.common.config import load_config, save_config
        config_data = {
            "monitor": {"bulk_min_lines": 12},
            "scheduler": {"reminders": [{"name": "water", "interval_ms": 60000, "message": "Drink"}]},
            "llm": {"provider": "google", "google_api_key": "gk-file"},
        }
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(config_data))

        with patch("pastewatch.common.config.CONFIG_PATH", config_file), \
             patch("pastewatch.common.config.CONFIG_DIR", tmp_path):
            save_config(load_config())
            reloaded = load_config()

        assert reloaded.monitor.bulk_min_lines == 12
        assert reloaded.scheduler.reminders[0].message == "Drink"
        assert reloaded.llm.google_api_key == "gk-file"
        assert oct(config_file.stat().st_mode & 0o777) == "0o600"


@pytest.fixture
def pastewatch_logger():
    import logging

    logger = logging.getLogger("pastewatch")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


class TestFileLogging:
    def test_writes_component_logs_to_file(self, tmp_path, pastewatch_logger):
        import logging
        from pastewatch.common.config import setup_file_logging

        log_path = setup_file_logging(tmp_path / "logs")
        logging.getLogger("pastewatch.monitor.session").info("Session started (2 reminders)")
        for handler in pastewatch_logger.handlers:
            handler.flush()

        assert log_path == tmp_path / "logs" / "pastewatch.log"
        assert "pastewatch.monitor.session: Session started (2 reminders)" in log_path.read_text()

    def test_repeated_setup_adds_one_handler(self, tmp_path, pastewatch_logger):
        import logging
        from pastewatch.common.config import setup_file_logging

        before = len(pastewatch_logger.handlers)
        setup_file_logging(tmp_path)
        setup_file_logging(tmp_path)

        file_handlers = [
            h for h in pastewatch_logger.handlers[before:] if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1

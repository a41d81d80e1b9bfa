"""
Review-Time Estimator

Heuristic estimate of how long a reader needs to skim a bulk insertion.
Pure functions only; every input is explicit.
"""

from typing import Mapping, Optional

from ..common.config import EstimatorConfig

DEFAULT_PER_CHAR_MS = 15.0
DEFAULT_PER_LINE_MS = 150.0
MIN_REVIEW_MS = 1500.0
MAX_REVIEW_MS = 20000.0


def estimate_review_time_ms(
    chars: int,
    lines: int,
    factor: float = 1.0,
    *,
    per_char_ms: float = DEFAULT_PER_CHAR_MS,
    per_line_ms: float = DEFAULT_PER_LINE_MS,
    min_ms: float = MIN_REVIEW_MS,
    max_ms: float = MAX_REVIEW_MS,
) -> float:
    """
    Estimate review time for an insertion.

    ms = (chars * per_char_ms + lines * per_line_ms) * factor,
    clamped to [min_ms, max_ms].

    Args:
        chars: Inserted character count
        lines: Inserted line break count
        factor: Content-density multiplier (e.g. 1.2 for denser syntaxes)

    Returns:
        Expected review duration in milliseconds
    """
    ms = max(0, chars) * per_char_ms + max(0, lines) * per_line_ms
    ms *= factor
    return max(min_ms, min(ms, max_ms))


def language_factor(language_id: Optional[str], factors: Mapping[str, float]) -> float:
    """Density multiplier for an editor language id (1.0 when unknown)."""
    if not language_id:
        return 1.0
    return factors.get(language_id.lower(), 1.0)


class ReviewTimeEstimator:
    """Config-bound wrapper around estimate_review_time_ms."""

    def __init__(self, config: Optional[EstimatorConfig] = None):
        self._config = config or EstimatorConfig()

    def estimate(self, chars: int, lines: int, language_id: Optional[str] = None) -> float:
        cfg = self._config
        return estimate_review_time_ms(
            chars,
            lines,
            language_factor(language_id, cfg.language_factors),
            per_char_ms=cfg.per_char_ms,
            per_line_ms=cfg.per_line_ms,
            min_ms=cfg.min_ms,
            max_ms=cfg.max_ms,
        )

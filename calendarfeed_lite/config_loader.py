"""calendarfeed_lite.config_loader

Lightweight config for calendarfeed_lite.

- Exposes a typed dataclass `Config` built from a plain mapping with
  coercion and bounds checking.
- `load_config_from_env()` reads CALENDARFEED_* environment variables.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Environment variable -> Config field
ENV_VARS: dict[str, str] = {
    "CALENDARFEED_LOOKBACK_DAYS": "lookback_days",
    "CALENDARFEED_LOOKAHEAD_DAYS": "lookahead_days",
    "CALENDARFEED_CACHE_TTL": "cache_ttl_seconds",
    "CALENDARFEED_CACHE_MAX_SIZE": "cache_max_size",
    "CALENDARFEED_MAX_ITERATIONS": "max_iterations",
    "CALENDARFEED_LOG_LEVEL": "log_level",
}


@dataclass
class Config:
    """Typed configuration for calendarfeed_lite.

    Fields:
        lookback_days: days before "now" covered by the default window (0..366)
        lookahead_days: days after "now" covered by the default window (1..1830)
        cache_ttl_seconds: lifetime of a cached window result (0..86400)
        cache_max_size: number of cached windows kept (1..1024)
        max_iterations: expansion period ceiling per template (1..100000)
        log_level: logging level name
    """

    lookback_days: int = 30
    lookahead_days: int = 90
    cache_ttl_seconds: int = 120
    cache_max_size: int = 32
    max_iterations: int = 5000
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and clamped into their allowed
        range, logging a warning whenever a value is replaced.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int, low: int, high: int) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < low:
                logger.warning("%s %d below minimum; coercing to %d", key, value, low)
                return low
            if value > high:
                logger.warning("%s %d above maximum; coercing to %d", key, value, high)
                return high
            return value

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"
        if log_level not in _LOG_LEVELS:
            logger.warning("Unknown log_level %r; using INFO", log_level)
            log_level = "INFO"

        return cls(
            lookback_days=_coerce_int("lookback_days", 30, 0, 366),
            lookahead_days=_coerce_int("lookahead_days", 90, 1, 1830),
            cache_ttl_seconds=_coerce_int("cache_ttl_seconds", 120, 0, 86400),
            cache_max_size=_coerce_int("cache_max_size", 32, 1, 1024),
            max_iterations=_coerce_int("max_iterations", 5000, 1, 100000),
            log_level=log_level,
        )


def load_config_from_env(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from CALENDARFEED_* environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``

    Returns:
        Config with values from the environment (or defaults)
    """
    environ = os.environ if environ is None else environ
    raw = {field: environ[var] for var, field in ENV_VARS.items() if environ.get(var)}
    cfg = Config.from_dict(raw)
    logger.debug("Configuration values: %s", cfg)
    return cfg

"""
Central logging configuration for calendarfeed_lite.

Keeps the package's own diagnostics (skipped lines, unparseable rules,
expansion summaries) available at DEBUG while holding the logging of
libraries it builds on at WARNING.
"""

import logging
import os
from typing import Any, Optional

# Third-party libraries whose debug output is never useful here
NOISY_LOGGERS: dict[str, int] = {
    "dateutil": logging.WARNING,
    "icalendar": logging.INFO,
    "pydantic": logging.WARNING,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

PACKAGE_LOGGERS = [
    "calendarfeed_lite",
    "calendarfeed_lite.lite_parser",
    "calendarfeed_lite.lite_datetime_utils",
    "calendarfeed_lite.lite_rrule_parser",
    "calendarfeed_lite.lite_rrule_expander",
    "calendarfeed_lite.lite_event_merger",
    "calendarfeed_lite.lite_expansion_cache",
    "calendarfeed_lite.config_loader",
]


def configure_lite_logging(
    debug_mode: bool = False, force_debug: Optional[bool] = None, settings: Any = None
) -> None:
    """
    Configure logging levels for calendarfeed_lite.

    Args:
        debug_mode: Whether to enable debug logging for calendarfeed_lite modules
        force_debug: Override debug mode setting (None to use env var detection)
        settings: config_loader.Config-like object; its ``log_level`` sets the
            root level unless CALENDARFEED_LOG_LEVEL is set

    Environment Variables:
        CALENDARFEED_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CALENDARFEED_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("CALENDARFEED_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("CALENDARFEED_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    settings_log_level = str(getattr(settings, "log_level", "") or "").upper()

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in _LOG_LEVELS:
        root_level = getattr(logging, env_log_level)
    elif settings_log_level in _LOG_LEVELS and not final_debug:
        root_level = getattr(logging, settings_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if the host application has not installed one
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s"))
        root_logger.addHandler(handler)

    logger_config = dict(NOISY_LOGGERS)
    for module in PACKAGE_LOGGERS:
        logger_config[module] = root_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info("Debug logging enabled for calendarfeed_lite modules")
    else:
        root_logger.info("Production logging configuration applied")


def reset_logging_to_debug() -> None:
    """
    Reset all loggers to DEBUG level for troubleshooting.
    """
    logging.getLogger().setLevel(logging.DEBUG)

    for logger_name in [*NOISY_LOGGERS, *PACKAGE_LOGGERS]:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in ["calendarfeed_lite", "calendarfeed_lite.lite_rrule_expander", "dateutil"]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status

"""Tests for calendarfeed_lite.lite_logging module."""

import logging
import os
from unittest.mock import patch

import pytest

from calendarfeed_lite.config_loader import Config
from calendarfeed_lite.lite_logging import (
    NOISY_LOGGERS,
    PACKAGE_LOGGERS,
    configure_lite_logging,
    get_logging_status,
    reset_logging_to_debug,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_logger_levels():
    names = ["", *NOISY_LOGGERS, *PACKAGE_LOGGERS]
    original = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in original.items():
        logging.getLogger(name).setLevel(level)


class TestConfigureLiteLogging:
    """Tests for configure_lite_logging function."""

    def test_default_production_mode(self):
        """Test default production mode configuration."""
        configure_lite_logging()

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("dateutil").level == logging.WARNING
        assert logging.getLogger("calendarfeed_lite").level == logging.INFO
        assert logging.getLogger("calendarfeed_lite.lite_rrule_expander").level == logging.INFO

    def test_debug_mode(self):
        """Test debug mode configuration."""
        configure_lite_logging(debug_mode=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("calendarfeed_lite.lite_parser").level == logging.DEBUG
        # Third-party loggers stay quiet
        assert logging.getLogger("dateutil").level == logging.WARNING

    def test_force_debug_overrides_debug_mode(self):
        configure_lite_logging(debug_mode=True, force_debug=False)
        assert logging.getLogger("calendarfeed_lite").level == logging.INFO

    @patch.dict(os.environ, {"CALENDARFEED_DEBUG": "yes"})
    def test_env_debug_override(self):
        """Test CALENDARFEED_DEBUG environment variable enables debug."""
        configure_lite_logging(debug_mode=False)
        assert logging.getLogger().level == logging.DEBUG

    @patch.dict(os.environ, {"CALENDARFEED_LOG_LEVEL": "WARNING"})
    def test_env_log_level_override(self):
        """Test CALENDARFEED_LOG_LEVEL environment variable sets root level."""
        configure_lite_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_settings_log_level(self):
        configure_lite_logging(settings=Config(log_level="WARNING"))

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("calendarfeed_lite.lite_parser").level == logging.WARNING

    @patch.dict(os.environ, {"CALENDARFEED_LOG_LEVEL": "ERROR"})
    def test_env_log_level_beats_settings(self):
        configure_lite_logging(settings=Config(log_level="WARNING"))
        assert logging.getLogger().level == logging.ERROR

    def test_debug_mode_beats_settings_log_level(self):
        configure_lite_logging(debug_mode=True, settings=Config(log_level="ERROR"))
        assert logging.getLogger("calendarfeed_lite").level == logging.DEBUG

    def test_settings_without_log_level_keep_defaults(self, simple_settings):
        configure_lite_logging(settings=simple_settings)
        assert logging.getLogger().level == logging.INFO

    def test_existing_handlers_preserved(self):
        root_logger = logging.getLogger()
        handler = logging.NullHandler()
        root_logger.addHandler(handler)
        try:
            before = list(root_logger.handlers)
            configure_lite_logging()
            assert root_logger.handlers == before
        finally:
            root_logger.removeHandler(handler)


def test_noisy_loggers_limited_to_imported_libraries():
    assert set(NOISY_LOGGERS) == {"dateutil", "icalendar", "pydantic"}
    assert "asyncio" not in NOISY_LOGGERS


def test_reset_logging_to_debug():
    configure_lite_logging()
    reset_logging_to_debug()

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("dateutil").level == logging.DEBUG
    assert logging.getLogger("calendarfeed_lite").level == logging.DEBUG


def test_get_logging_status():
    configure_lite_logging()
    status = get_logging_status()

    assert status["root"] == "INFO"
    assert status["calendarfeed_lite"] == "INFO"
    assert status["dateutil"] == "WARNING"

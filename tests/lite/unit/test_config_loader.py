"""Tests for calendarfeed_lite.config_loader."""

import pytest

from calendarfeed_lite.config_loader import Config, load_config_from_env

pytestmark = pytest.mark.unit


def test_defaults():
    cfg = Config()
    assert cfg.lookback_days == 30
    assert cfg.lookahead_days == 90
    assert cfg.cache_ttl_seconds == 120
    assert cfg.cache_max_size == 32
    assert cfg.max_iterations == 5000
    assert cfg.log_level == "INFO"


def test_from_dict_none_uses_defaults():
    assert Config.from_dict(None) == Config()


def test_from_dict_coerces_numeric_strings():
    cfg = Config.from_dict({"lookback_days": "7", "lookahead_days": "14", "log_level": "debug"})
    assert cfg.lookback_days == 7
    assert cfg.lookahead_days == 14
    assert cfg.log_level == "DEBUG"


def test_from_dict_invalid_int_falls_back(caplog):
    cfg = Config.from_dict({"max_iterations": "lots"})
    assert cfg.max_iterations == 5000
    assert "not an int" in caplog.text


@pytest.mark.parametrize(
    ("key", "raw", "expected"),
    [
        ("lookback_days", -5, 0),
        ("lookahead_days", 0, 1),
        ("lookahead_days", 10000, 1830),
        ("cache_max_size", 0, 1),
        ("max_iterations", 10**9, 100000),
    ],
)
def test_from_dict_clamps(key, raw, expected):
    assert getattr(Config.from_dict({key: raw}), key) == expected


def test_unknown_log_level_defaults_to_info():
    assert Config.from_dict({"log_level": "verbose"}).log_level == "INFO"


def test_load_config_from_env(monkeypatch):
    monkeypatch.setenv("CALENDARFEED_LOOKBACK_DAYS", "3")
    monkeypatch.setenv("CALENDARFEED_CACHE_TTL", "60")
    monkeypatch.setenv("CALENDARFEED_MAX_ITERATIONS", "250")
    monkeypatch.setenv("CALENDARFEED_LOG_LEVEL", "warning")

    cfg = load_config_from_env()

    assert cfg.lookback_days == 3
    assert cfg.lookahead_days == 90
    assert cfg.cache_ttl_seconds == 60
    assert cfg.max_iterations == 250
    assert cfg.log_level == "WARNING"


def test_load_config_from_mapping_ignores_empty_values():
    cfg = load_config_from_env({"CALENDARFEED_LOOKAHEAD_DAYS": "", "CALENDARFEED_CACHE_MAX_SIZE": "8"})
    assert cfg.lookahead_days == 90
    assert cfg.cache_max_size == 8

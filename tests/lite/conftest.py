from collections.abc import Callable, Generator
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from calendarfeed_lite.lite_models import LiteCalendarEvent


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object used across lite tests.

    Mirrors the attributes of config_loader.Config that components read
    through getattr, with the production defaults.
    """
    return SimpleNamespace(
        lookback_days=30,
        lookahead_days=90,
        cache_ttl_seconds=120,
        cache_max_size=32,
        max_iterations=5000,
    )


@pytest.fixture
def make_event() -> Callable[..., LiteCalendarEvent]:
    """Factory for LiteCalendarEvent records with sensible defaults."""

    def _make(
        start: datetime,
        end: Optional[datetime] = None,
        rrule: Optional[str] = None,
        uid: str = "event-1",
        summary: str = "Test event",
        **extra: Any,
    ) -> LiteCalendarEvent:
        return LiteCalendarEvent(uid=uid, summary=summary, start=start, end=end, rrule=rrule, **extra)

    return _make


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Keep CALENDARFEED_* variables from leaking into tests."""
    for var in (
        "CALENDARFEED_DEBUG",
        "CALENDARFEED_LOG_LEVEL",
        "CALENDARFEED_LOOKBACK_DAYS",
        "CALENDARFEED_LOOKAHEAD_DAYS",
        "CALENDARFEED_CACHE_TTL",
        "CALENDARFEED_CACHE_MAX_SIZE",
        "CALENDARFEED_MAX_ITERATIONS",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


# ==================== ICS Test Data Fixtures ====================


@pytest.fixture
def sample_ics_recurring_with_overrides() -> str:
    """
    Return an ICS string with a weekly series, one EXDATE and one moved instance.

    - Series: "Weekly Sync" every Monday 10:00-10:30 from 2024-01-01
    - EXDATE: 2024-01-15 (cancelled)
    - Override: 2024-01-22 instance moved to Tuesday 2024-01-23 14:00
    - One-off: "Lunch" on 2024-01-10
    """
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//CalendarFeed Test//EN
BEGIN:VEVENT
UID:weekly-sync@calendarfeed.test
DTSTART:20240101T100000
DTEND:20240101T103000
SUMMARY:Weekly Sync
RRULE:FREQ=WEEKLY
EXDATE:20240115T100000
END:VEVENT
BEGIN:VEVENT
UID:weekly-sync@calendarfeed.test
RECURRENCE-ID:20240122T100000
DTSTART:20240123T140000
DTEND:20240123T143000
SUMMARY:Weekly Sync (moved)
END:VEVENT
BEGIN:VEVENT
UID:lunch@calendarfeed.test
DTSTART:20240110T120000
DTEND:20240110T130000
SUMMARY:Lunch
END:VEVENT
END:VCALENDAR
"""

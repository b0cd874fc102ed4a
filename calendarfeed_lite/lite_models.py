"""Data models for ICS feed decoding and recurrence expansion - CalendarFeed Lite version."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from .lite_datetime_utils import align_to_frame


class LiteFrequency(str, Enum):
    """Supported RRULE frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


# RFC 5545 weekday codes mapped to datetime.weekday() values (Monday=0)
WEEKDAY_CODES: dict[str, int] = {
    "MO": 0,
    "TU": 1,
    "WE": 2,
    "TH": 3,
    "FR": 4,
    "SA": 5,
    "SU": 6,
}


class LiteWeekdaySelector(BaseModel):
    """One BYDAY entry, e.g. ``2TU`` (second Tuesday) or ``-1FR`` (last Friday)."""

    ordinal: Optional[int] = Field(default=None, description="nth occurrence, negative counts from the end")
    weekday: int = Field(..., ge=0, le=6, description="Weekday, Monday=0")

    model_config = ConfigDict(frozen=True)


class LiteRecurrenceRule(BaseModel):
    """Parsed RRULE value.

    Month numbers in ``by_month`` are zero-based (January=0).
    """

    frequency: LiteFrequency
    interval: int = Field(default=1, ge=1)
    until: Optional[datetime] = Field(default=None, description="Absolute series cutoff")
    count: Optional[int] = Field(default=None, ge=1, description="Maximum occurrences in the series")
    by_day: tuple[LiteWeekdaySelector, ...] = ()
    by_month_day: tuple[int, ...] = ()
    by_month: tuple[int, ...] = ()

    model_config = ConfigDict(frozen=True)


class LiteCalendarEvent(BaseModel):
    """Calendar event record decoded from a VEVENT, or an occurrence of one.

    A record carrying ``rrule`` is a recurrence template, one carrying
    ``recurrence_id`` overrides a single occurrence of the template sharing
    its ``uid``, and a record with neither is a plain one-off event.
    """

    # Core properties
    uid: str = Field(..., min_length=1, description="Stable identifier grouping a template with its overrides")
    summary: str = Field(..., min_length=1, description="Event title")
    description: Optional[str] = Field(default=None, description="Free-text description")
    location: Optional[str] = Field(default=None, description="Free-text location")

    # Time information
    start: datetime = Field(..., description="Event start (wall clock, or UTC instant)")
    end: Optional[datetime] = Field(default=None, description="Event end, absent for zero duration")
    is_all_day: bool = Field(default=False, description="start/end are calendar dates")
    time_zone: Optional[str] = Field(default=None, description="TZID hint, recorded but never applied")

    status: Optional[str] = Field(default=None, description="STATUS token, e.g. CANCELLED")

    # Recurrence
    rrule: Optional[str] = Field(default=None, description="Raw RRULE, templates only")
    exclusions: Optional[frozenset[datetime]] = Field(default=None, description="EXDATE instants")
    recurrence_id: Optional[datetime] = Field(
        default=None, description="RECURRENCE-ID of the occurrence this record replaces"
    )

    # RRULE expansion tracking
    is_expanded_instance: bool = Field(
        default=False, description="True if generated from RRULE expansion"
    )

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_recurrence_role(self) -> "LiteCalendarEvent":
        if self.rrule is not None and self.recurrence_id is not None:
            raise ValueError("an event cannot be both a recurrence template and an override")
        return self

    @property
    def is_template(self) -> bool:
        """Check if this record defines a recurring series."""
        return self.rrule is not None

    @property
    def is_override(self) -> bool:
        """Check if this record replaces one occurrence of a series."""
        return self.recurrence_id is not None

    @property
    def is_cancelled(self) -> bool:
        return (self.status or "").upper() == "CANCELLED"

    @property
    def duration(self) -> Optional[timedelta]:
        """Template duration, or None when the event has no end."""
        if self.end is None:
            return None
        return align_to_frame(self.end, self.start) - self.start

    @field_serializer("start", "end", "recurrence_id", when_used="unless-none")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()

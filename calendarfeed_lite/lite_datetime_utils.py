"""Date/date-time value handling for iCalendar feeds - CalendarFeed Lite.

Values decoded here stay on the wall clock: floating and TZID-qualified
date-times become naive datetimes, ``Z``-suffixed values become aware UTC
datetimes and all-day values become naive midnights. No zone database is
consulted; the TZID parameter is only recorded by the caller.
"""

import calendar
import logging
import re
from datetime import UTC, date, datetime
from typing import Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

_DATE_ONLY_RE = re.compile(r"^\d{8}$")
_UTC_DATETIME_RE = re.compile(r"^\d{8}T\d{6}Z$")
_LOCAL_DATETIME_RE = re.compile(r"^\d{8}T\d{6}$")


def _fields(value: str) -> tuple[int, int, int, int, int, int]:
    """Split a compact ``YYYYMMDD[THHMMSS]`` value into integer fields."""
    hour = minute = second = 0
    if len(value) >= 15:
        hour, minute, second = int(value[9:11]), int(value[11:13]), int(value[13:15])
    return int(value[0:4]), int(value[4:6]), int(value[6:8]), hour, minute, second


class LiteDateTimeParser:
    """Parser for iCalendar DATE / DATE-TIME property values."""

    def parse_datetime(
        self, value: str, params: Optional[dict[str, str]] = None
    ) -> tuple[datetime, bool]:
        """Decode a property value into ``(datetime, is_all_day)``.

        Args:
            value: Raw property value, e.g. ``20250624T170000``
            params: Property parameters (``VALUE``, ``TZID``...), keys upper-cased

        Returns:
            Tuple of the decoded datetime and the all-day flag

        Raises:
            ValueError: If the value cannot be decoded by any strategy
        """
        params = params or {}
        value = value.strip()

        if params.get("VALUE", "").upper() == "DATE" or _DATE_ONLY_RE.match(value):
            if not _DATE_ONLY_RE.match(value[:8]):
                raise ValueError(f"Invalid DATE value: {value!r}")
            year, month, day, _, _, _ = _fields(value[:8])
            return datetime(year, month, day), True

        if _UTC_DATETIME_RE.match(value):
            return datetime(*_fields(value), tzinfo=UTC), False

        if _LOCAL_DATETIME_RE.match(value):
            # TZID (if any) is a hint only; the clock fields are kept as-is
            return datetime(*_fields(value)), False

        try:
            return date_parser.parse(value), False
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Unable to parse datetime: {value!r}") from e

    def parse_datetime_optional(
        self, value: str, params: Optional[dict[str, str]] = None
    ) -> Optional[tuple[datetime, bool]]:
        """Decode a property value, returning None instead of raising."""
        try:
            return self.parse_datetime(value, params)
        except ValueError:
            logger.debug("Dropping undecodable date value %r (params=%r)", value, params)
            return None


_default_parser = LiteDateTimeParser()


def parse_ics_datetime(
    value: str, params: Optional[dict[str, str]] = None
) -> Optional[tuple[datetime, bool]]:
    """Module-level convenience wrapper around LiteDateTimeParser.parse_datetime_optional."""
    return _default_parser.parse_datetime_optional(value, params)


def align_to_frame(value: datetime, reference: datetime) -> datetime:
    """Bring ``value`` into the same awareness as ``reference``.

    An aware value meeting a naive frame is read as its UTC wall clock; a
    naive value meeting an aware frame is stamped with the frame's tzinfo.
    Values that already match are returned unchanged.
    """
    if reference.tzinfo is None:
        if value.tzinfo is None:
            return value
        return value.astimezone(UTC).replace(tzinfo=None)
    if value.tzinfo is None:
        return value.replace(tzinfo=reference.tzinfo)
    return value


def wall_clock_key(value: datetime) -> datetime:
    """Naive sort key usable across aware and naive datetimes."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def days_in_month(year: int, month: int) -> int:
    """Number of days in ``month`` (1-12) of ``year``."""
    return calendar.monthrange(year, month)[1]


def add_months(month_start: datetime, months: int) -> datetime:
    """Step a first-of-month datetime by whole calendar months.

    Only the year/month fields move, so no day clamping is ever needed.
    """
    index = month_start.year * 12 + (month_start.month - 1) + months
    return month_start.replace(year=index // 12, month=index % 12 + 1, day=1)


def at_time_of(day: date, source: datetime) -> datetime:
    """Place ``day`` at the wall-clock time (and tzinfo) of ``source``."""
    return datetime.combine(day, source.time(), tzinfo=source.tzinfo)

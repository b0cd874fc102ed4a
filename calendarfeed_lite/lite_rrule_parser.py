"""RRULE value parsing for CalendarFeed Lite.

``parse_rrule`` is the public entry point. Only a missing or unsupported FREQ
makes a rule unusable (None); any other malformed part is dropped on its own
and the rest of the rule is kept.
"""

import logging
import re
from datetime import datetime
from typing import Optional

from .lite_datetime_utils import LiteDateTimeParser
from .lite_models import WEEKDAY_CODES, LiteFrequency, LiteRecurrenceRule, LiteWeekdaySelector

logger = logging.getLogger(__name__)

_BYDAY_RE = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")
_UNTIL_RE = re.compile(r"^\d{8}(T\d{6}Z?)?$")


class LiteRRuleExpansionError(Exception):
    """Base exception for RRULE expansion errors."""


class LiteRRuleParseError(LiteRRuleExpansionError):
    """Error parsing RRULE string."""


def _split_rule(raw: str) -> dict[str, str]:
    """Split ``KEY=VALUE;KEY=VALUE`` into a dict with upper-cased keys."""
    parts: dict[str, str] = {}
    for segment in raw.split(";"):
        key, sep, value = segment.partition("=")
        if sep and key.strip():
            parts[key.strip().upper()] = value.strip()
    return parts


def _parse_int(key: str, value: str) -> Optional[int]:
    """Integer rule part, or None (logged) when it is not an integer."""
    try:
        return int(value)
    except ValueError:
        logger.debug("Ignoring non-integer %s value %r", key, value)
        return None


def _parse_until(value: str) -> Optional[datetime]:
    """Accept ``YYYYMMDD``, ``YYYYMMDDTHHMMSS`` and ``YYYYMMDDTHHMMSSZ``; None otherwise."""
    if _UNTIL_RE.match(value) is None:
        logger.debug("Ignoring unsupported UNTIL value %r", value)
        return None
    try:
        until, _ = LiteDateTimeParser().parse_datetime(value)
    except ValueError:
        logger.debug("Ignoring invalid UNTIL value %r", value)
        return None
    return until


def parse_by_day(value: str) -> tuple[LiteWeekdaySelector, ...]:
    """Parse BYDAY entries, dropping the ones that do not match ``[+-n]XX``."""
    selectors: list[LiteWeekdaySelector] = []
    for entry in value.split(","):
        match = _BYDAY_RE.match(entry.strip().upper())
        if match is None:
            logger.debug("Dropping invalid BYDAY entry %r", entry)
            continue
        ordinal = int(match.group(1)) if match.group(1) is not None else None
        if ordinal is not None and not 1 <= abs(ordinal) <= 53:
            logger.debug("Dropping BYDAY entry with out-of-range ordinal %r", entry)
            continue
        selectors.append(LiteWeekdaySelector(ordinal=ordinal, weekday=WEEKDAY_CODES[match.group(2)]))
    return tuple(selectors)


def _parse_int_list(key: str, value: str, low: int, high: int) -> tuple[int, ...]:
    """Comma-separated non-zero integers within ``low..high``; bad entries dropped."""
    numbers: list[int] = []
    for entry in value.split(","):
        try:
            number = int(entry.strip())
        except ValueError:
            logger.debug("Dropping non-numeric %s entry %r", key, entry)
            continue
        if number == 0 or not low <= number <= high:
            logger.debug("Dropping out-of-range %s entry %d", key, number)
            continue
        numbers.append(number)
    return tuple(numbers)


def parse_rrule_strict(raw: str) -> LiteRecurrenceRule:
    """Parse an RRULE value.

    Args:
        raw: RRULE value, e.g. ``FREQ=WEEKLY;BYDAY=MO,WE;INTERVAL=2``

    Returns:
        Parsed LiteRecurrenceRule

    Raises:
        LiteRRuleParseError: If FREQ is missing or unsupported. An INTERVAL
            that is not an integer becomes 1; a COUNT or UNTIL that cannot be
            decoded is dropped and the rest of the rule is kept
    """
    if not raw or not raw.strip():
        raise LiteRRuleParseError("Empty RRULE string")

    parts = _split_rule(raw)

    freq = parts.get("FREQ", "").upper()
    try:
        frequency = LiteFrequency(freq)
    except ValueError as e:
        raise LiteRRuleParseError(f"Unsupported FREQ {freq!r}") from e

    interval = _parse_int("INTERVAL", parts["INTERVAL"]) if "INTERVAL" in parts else None
    interval = max(1, interval) if interval is not None else 1

    count = _parse_int("COUNT", parts["COUNT"]) if "COUNT" in parts else None
    if count is not None and count < 1:
        logger.debug("Ignoring non-positive COUNT %d", count)
        count = None

    until = _parse_until(parts["UNTIL"].upper()) if "UNTIL" in parts else None

    by_day = parse_by_day(parts["BYDAY"]) if "BYDAY" in parts else ()
    by_month_day = _parse_int_list("BYMONTHDAY", parts["BYMONTHDAY"], -31, 31) if "BYMONTHDAY" in parts else ()
    by_month = (
        tuple(m - 1 for m in _parse_int_list("BYMONTH", parts["BYMONTH"], 1, 12)) if "BYMONTH" in parts else ()
    )

    return LiteRecurrenceRule(
        frequency=frequency,
        interval=interval,
        until=until,
        count=count,
        by_day=by_day,
        by_month_day=by_month_day,
        by_month=by_month,
    )


def parse_rrule(raw: Optional[str]) -> Optional[LiteRecurrenceRule]:
    """Parse an RRULE value, returning None when it is unusable."""
    if raw is None:
        return None
    try:
        return parse_rrule_strict(raw)
    except LiteRRuleParseError as e:
        logger.debug("Unparseable RRULE %r: %s", raw, e)
        return None

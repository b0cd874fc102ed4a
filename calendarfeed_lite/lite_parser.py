"""iCalendar feed decoder - CalendarFeed Lite version.

Turns raw feed text into LiteCalendarEvent records. The feed is scanned for
BEGIN/END boundaries and every complete VEVENT block is handed to icalendar
on its own, so a block icalendar rejects costs only that event. Every other
component kind (VTODO, VJOURNAL, VALARM, VTIMEZONE...) produces no records,
and components nested inside an event keep their properties to themselves.

Date values are re-read from icalendar's clock string plus the property
parameters, so TZID-qualified times stay naive wall-clock values.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from icalendar import Calendar
from icalendar.parser import Contentlines
from icalendar.prop import vText
from pydantic import ValidationError

from .lite_datetime_utils import LiteDateTimeParser
from .lite_models import LiteCalendarEvent

logger = logging.getLogger(__name__)

EVENT_COMPONENT = "VEVENT"

_BLOCK_HEADER = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//CalendarFeed//Lite Decoder//EN\r\n"
_BLOCK_FOOTER = "END:VCALENDAR\r\n"


def _last(value: Any) -> Any:
    """Repeated properties come back as a list; the last occurrence wins."""
    if isinstance(value, list):
        return value[-1] if value else None
    return value


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _text(prop: Any) -> Optional[str]:
    """Unescaped TEXT value, or None when absent."""
    prop = _last(prop)
    return None if prop is None else str(prop)


def _ical_value(prop: Any) -> str:
    """Clock string of a parsed property.

    A value icalendar could not type is kept as text holding the original
    string, which is returned unchanged.
    """
    if isinstance(prop, vText):
        return str(prop)
    return prop.to_ical().decode("utf-8")


def _params(prop: Any) -> dict[str, str]:
    return {str(key).upper(): str(value) for key, value in getattr(prop, "params", {}).items()}


class LiteICSParser:
    """Decoder for iCalendar feed text."""

    def __init__(self, datetime_parser: Optional[LiteDateTimeParser] = None) -> None:
        """Initialize decoder.

        Args:
            datetime_parser: Date value decoder (defaults to LiteDateTimeParser)
        """
        self.datetime_parser = datetime_parser or LiteDateTimeParser()

    def decode(self, text: str) -> list[LiteCalendarEvent]:
        """Decode feed text into event records.

        Args:
            text: Raw iCalendar text

        Returns:
            Records in feed order; empty when nothing usable was found
        """
        if not text:
            return []

        events: list[LiteCalendarEvent] = []
        stack: list[str] = []
        block: Optional[list[str]] = None
        block_depth = 0
        skipped_lines = 0

        for line in Contentlines.from_ical(text):
            if not line:
                continue
            try:
                name, _, value = line.parts()
            except ValueError:
                skipped_lines += 1
                continue
            name = name.upper()

            if name == "BEGIN":
                kind = value.strip().upper()
                stack.append(kind)
                if block is None and kind == EVENT_COMPONENT:
                    block = []
                    block_depth = len(stack)
                if block is not None:
                    block.append(f"BEGIN:{kind}")
                continue

            if name == "END":
                kind = value.strip().upper()
                closed = self._close(stack, kind)
                if block is None or not closed:
                    continue
                # Frames closed implicitly still need an END for icalendar
                block.extend(f"END:{closed_kind}" for closed_kind in closed)
                if len(stack) < block_depth:
                    if kind == EVENT_COMPONENT and len(stack) == block_depth - 1:
                        events.extend(self._decode_block(block))
                    else:
                        logger.debug("Discarding VEVENT left open by END:%s", kind)
                    block = None
                continue

            if block is not None:
                block.append(line)

        if block is not None:
            logger.debug("Discarding VEVENT left open at end of feed")
        if skipped_lines:
            logger.debug("Skipped %d malformed content lines", skipped_lines)
        logger.debug("Decoded %d events from feed", len(events))
        return events

    def _close(self, stack: list[str], kind: str) -> list[str]:
        """Pop frames up to and including the innermost open ``kind``.

        Returns the closed kinds innermost first; an END with no matching
        BEGIN closes nothing.
        """
        for depth in range(len(stack) - 1, -1, -1):
            if stack[depth] == kind:
                closed = stack[depth:]
                del stack[depth:]
                return list(reversed(closed))
        logger.debug("Ignoring END:%s without matching BEGIN", kind)
        return []

    def _decode_block(self, block: list[str]) -> list[LiteCalendarEvent]:
        """Decode one complete VEVENT block with icalendar."""
        try:
            calendar = Calendar.from_ical(_BLOCK_HEADER + "\r\n".join(block) + "\r\n" + _BLOCK_FOOTER)
        except Exception as e:
            logger.warning("Failed to parse event block: %s", e)
            return []

        events = []
        for component in calendar.subcomponents:
            if component.name != EVENT_COMPONENT:
                continue
            if component.errors:
                logger.debug("icalendar skipped content in VEVENT: %s", component.errors)
            event = self._build_event(component)
            if event is not None:
                events.append(event)
        return events

    def _parse_date(self, prop: Any) -> Optional[tuple[datetime, bool]]:
        if prop is None:
            return None
        return self.datetime_parser.parse_datetime_optional(_ical_value(prop), _params(prop))

    def _exclusions(self, component: Any) -> frozenset[datetime]:
        """EXDATE instants across comma lists and repeated lines."""
        excluded: set[datetime] = set()
        for prop in _as_list(component.get("EXDATE")):
            params = _params(prop)
            for item in _ical_value(prop).split(","):
                if not item.strip():
                    continue
                parsed = self.datetime_parser.parse_datetime_optional(item, params)
                if parsed is not None:
                    excluded.add(parsed[0])
        return frozenset(excluded)

    @staticmethod
    def _zone_hint(prop: Any, value: datetime) -> Optional[str]:
        params = _params(prop)
        if "TZID" in params:
            return params["TZID"]
        if value.tzinfo is not None:
            return "UTC"
        return None

    def _build_event(self, component: Any) -> Optional[LiteCalendarEvent]:
        """Emit a record, or None when required fields are missing."""
        uid = (_text(component.get("UID")) or "").strip()
        summary = _text(component.get("SUMMARY"))
        dtstart = _last(component.get("DTSTART"))
        start = self._parse_date(dtstart)

        if not uid or not summary or start is None:
            logger.debug(
                "Discarding incomplete VEVENT (uid=%r, summary present=%s, start present=%s)",
                uid,
                bool(summary),
                start is not None,
            )
            return None

        end = self._parse_date(_last(component.get("DTEND")))
        recurrence_id = self._parse_date(_last(component.get("RECURRENCE-ID")))
        rrule_prop = _last(component.get("RRULE"))
        rrule = _ical_value(rrule_prop).strip() if rrule_prop is not None else None

        if rrule and recurrence_id is not None:
            logger.debug("VEVENT %s has both RRULE and RECURRENCE-ID; treating as override", uid)
            rrule = None

        status = _text(component.get("STATUS"))
        exclusions = self._exclusions(component)

        data: dict[str, Any] = {
            "uid": uid,
            "summary": summary,
            "description": _text(component.get("DESCRIPTION")),
            "location": _text(component.get("LOCATION")),
            "start": start[0],
            "end": end[0] if end is not None else None,
            "is_all_day": start[1],
            "time_zone": self._zone_hint(dtstart, start[0]),
            "status": status.strip() if status else None,
            "rrule": rrule or None,
            "exclusions": exclusions or None,
            "recurrence_id": recurrence_id[0] if recurrence_id is not None else None,
        }
        try:
            return LiteCalendarEvent(**data)
        except ValidationError as e:
            logger.debug("Discarding invalid VEVENT %s: %s", uid, e)
            return None


def decode_feed(text: str) -> list[LiteCalendarEvent]:
    """Decode feed text with a default LiteICSParser."""
    return LiteICSParser().decode(text)

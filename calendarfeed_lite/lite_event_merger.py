"""Feed assembly for CalendarFeed Lite.

Combines the decoder's one-off and override records with the expanded
occurrences of every recurrence template into one window-filtered,
chronologically sorted list. Overrides suppress the expanded occurrence they
replace through the exclusion set handed to the expander.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, time, timedelta
from typing import Any, Optional

from .lite_datetime_utils import align_to_frame, wall_clock_key
from .lite_models import LiteCalendarEvent
from .lite_rrule_expander import LiteRRuleExpander
from .lite_rrule_parser import parse_rrule

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_LOOKAHEAD_DAYS = 90
DEFAULT_QUERY_SPAN_DAYS = 7


def collect_excluded_instants(
    template: LiteCalendarEvent, events: Iterable[LiteCalendarEvent]
) -> frozenset[datetime]:
    """Instants to suppress when expanding ``template``.

    The template's own EXDATEs plus the RECURRENCE-ID of every override
    record sharing its UID.

    Args:
        template: Recurrence template
        events: All records decoded from the same feed

    Returns:
        Frozen set of excluded occurrence starts
    """
    excluded = set(template.exclusions or ())
    for event in events:
        if event.uid == template.uid and event.recurrence_id is not None:
            logger.debug("Override of %s at %s suppresses expanded occurrence", event.uid, event.recurrence_id)
            excluded.add(event.recurrence_id)
    return frozenset(excluded)


def _overlaps(event: LiteCalendarEvent, window_start: datetime, window_end: datetime) -> bool:
    start = event.start
    end = event.end if event.end is not None else start
    return start <= align_to_frame(window_end, start) and end >= align_to_frame(window_start, end)


class LiteEventMerger:
    """Merges one-off records, overrides and expanded occurrences for a window."""

    def __init__(self, settings: Any = None, expander: Optional[LiteRRuleExpander] = None):
        """Initialize merger.

        Args:
            settings: Configuration object passed to the default expander
            expander: Expander to use instead of one built from ``settings``
        """
        self.expander = expander or LiteRRuleExpander(settings)

    def events_in_window(
        self,
        events: list[LiteCalendarEvent],
        window_start: datetime,
        window_end: datetime,
    ) -> list[LiteCalendarEvent]:
        """Everything from a decoded feed that overlaps the window.

        Templates are replaced by their occurrences; a template whose RRULE
        cannot be parsed contributes nothing. One-off and override records
        are kept when they overlap the inclusive window.

        Args:
            events: Decoded feed records
            window_start: Inclusive window start
            window_end: Inclusive window end

        Returns:
            Records sorted by start

        Raises:
            ValueError: If window_start is after window_end
        """
        if wall_clock_key(window_start) > wall_clock_key(window_end):
            raise ValueError(f"window_start {window_start} is after window_end {window_end}")

        merged: list[LiteCalendarEvent] = []
        expanded_count = 0

        for event in events:
            if event.is_template:
                rule = parse_rrule(event.rrule)
                if rule is None:
                    logger.warning("Skipping %s: unsupported or invalid RRULE %r", event.uid, event.rrule)
                    continue
                occurrences = self.expander.expand(
                    event,
                    window_start,
                    window_end,
                    collect_excluded_instants(event, events),
                    rule=rule,
                )
                expanded_count += len(occurrences)
                merged.extend(occurrences)
            elif _overlaps(event, window_start, window_end):
                merged.append(event)

        merged = self.deduplicate_events(merged)
        merged.sort(key=lambda e: wall_clock_key(e.start))

        logger.debug(
            "Assembled %d events (%d expanded) from %d records for %s..%s",
            len(merged),
            expanded_count,
            len(events),
            window_start,
            window_end,
        )
        return merged

    def deduplicate_events(self, events: list[LiteCalendarEvent]) -> list[LiteCalendarEvent]:
        """Remove repeated records, e.g. a feed that lists the same VEVENT twice.

        Records are duplicates when UID, summary, start, end, all-day flag
        and RECURRENCE-ID all match; overrides with different RECURRENCE-IDs
        are always kept apart.
        """
        seen = set()
        deduplicated = []

        for event in events:
            key = (
                event.uid,
                event.summary,
                event.start,
                event.end,
                event.is_all_day,
                event.recurrence_id,
            )
            if key not in seen:
                seen.add(key)
                deduplicated.append(event)

        if len(events) != len(deduplicated):
            logger.debug("Removed %d duplicate events", len(events) - len(deduplicated))

        return deduplicated


def default_window(
    now: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> tuple[datetime, datetime]:
    """Window used when a caller asks for "all events" around ``now``."""
    return now - timedelta(days=lookback_days), now + timedelta(days=lookahead_days)


def default_window_from_settings(now: datetime, settings: Any) -> tuple[datetime, datetime]:
    """``default_window`` sized by a config_loader.Config-like object.

    Missing attributes (or ``settings=None``) fall back to 30 days back and
    90 days ahead.
    """
    return default_window(
        now,
        lookback_days=getattr(settings, "lookback_days", DEFAULT_LOOKBACK_DAYS),
        lookahead_days=getattr(settings, "lookahead_days", DEFAULT_LOOKAHEAD_DAYS),
    )


def query_window(start_date: datetime, end_date: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Day-granular window from a start date and optional end date.

    The start is moved to midnight; the end defaults to a week after the
    start and always covers its whole last day.
    """
    start = datetime.combine(start_date.date(), time(0), tzinfo=start_date.tzinfo)
    if end_date is None:
        end_date = start + timedelta(days=DEFAULT_QUERY_SPAN_DAYS)
    end = datetime.combine(end_date.date(), time.max, tzinfo=end_date.tzinfo)
    if wall_clock_key(end) < wall_clock_key(start):
        raise ValueError(f"end_date {end_date} is before start_date {start_date}")
    return start, end

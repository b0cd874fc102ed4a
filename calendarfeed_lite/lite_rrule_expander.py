"""RRULE expansion logic for CalendarFeed Lite.

Expansion walks the series period by period (day, Monday-starting week,
month or year) from the template's own start, generating the candidate
instants of each period and applying, in order: the series start, the UNTIL
cutoff, the COUNT cap, the query window and the exclusion set. COUNT and
UNTIL bound the abstract series, so changing the query window only changes
which occurrences are returned, never which ones exist.

All stepping happens on calendar fields of the template's wall clock; an
occurrence "a week later" is the same hour and minute seven calendar days
later.
"""

import logging
from collections.abc import Collection
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from .lite_datetime_utils import add_months, align_to_frame, at_time_of, days_in_month
from .lite_models import LiteCalendarEvent, LiteFrequency, LiteRecurrenceRule
from .lite_rrule_parser import parse_rrule

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 5000


@dataclass
class RRuleExpanderConfig:
    """Configuration for RRULE expansion."""

    # Hard ceiling on periods examined per expansion, whatever the rule shape
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    @classmethod
    def from_settings(cls, settings: Any) -> "RRuleExpanderConfig":
        """Extract RRULE configuration from settings object.

        Args:
            settings: Configuration object (e.g. config_loader.Config) or None

        Returns:
            RRuleExpanderConfig with values from settings or defaults
        """
        return cls(
            max_iterations=getattr(settings, "max_iterations", DEFAULT_MAX_ITERATIONS),
        )


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> Optional[int]:
    """Day number of the nth ``weekday`` (Monday=0) in a month.

    Negative ``n`` counts from the end of the month (-1 is the last one).
    Returns None when the month has no such occurrence, e.g. a fifth Monday.
    """
    last_day = days_in_month(year, month)
    if n > 0:
        offset = (weekday - date(year, month, 1).weekday()) % 7
        day = 1 + offset + (n - 1) * 7
        return day if day <= last_day else None
    offset = (date(year, month, last_day).weekday() - weekday) % 7
    day = last_day - offset + (n + 1) * 7
    return day if day >= 1 else None


def month_candidates(rule: LiteRecurrenceRule, year: int, month: int, dtstart: datetime) -> list[datetime]:
    """Candidates inside one month (1-12), shared by MONTHLY and YEARLY.

    Days that do not exist in the month are dropped, never clamped.
    """
    last_day = days_in_month(year, month)
    days: list[int] = []

    if rule.by_month_day:
        for month_day in rule.by_month_day:
            day = month_day if month_day > 0 else last_day + month_day + 1
            if 1 <= day <= last_day:
                days.append(day)
    elif rule.by_day:
        for selector in rule.by_day:
            if selector.ordinal is not None:
                day = nth_weekday_of_month(year, month, selector.weekday, selector.ordinal)
                if day is not None:
                    days.append(day)
            else:
                first = nth_weekday_of_month(year, month, selector.weekday, 1)
                days.extend(range(first, last_day + 1, 7))  # type: ignore[arg-type]
    elif dtstart.day <= last_day:
        days.append(dtstart.day)

    return [at_time_of(date(year, month, day), dtstart) for day in days]


class _FrequencyHandler:
    """Frequency-specific pieces of the expansion loop."""

    frequency: LiteFrequency
    approx_days: int

    def period_start(self, value: datetime) -> datetime:
        """Midnight that opens the period containing ``value``."""
        raise NotImplementedError

    def advance(self, anchor: datetime, steps: int) -> datetime:
        """Move the anchor forward by ``steps`` whole periods."""
        raise NotImplementedError

    def candidates(self, rule: LiteRecurrenceRule, anchor: datetime, dtstart: datetime) -> list[datetime]:
        """Candidate instants of the anchor's period, at dtstart's time of day."""
        raise NotImplementedError

    @staticmethod
    def _midnight(day: date, reference: datetime) -> datetime:
        return datetime.combine(day, time(0), tzinfo=reference.tzinfo)


class _DailyHandler(_FrequencyHandler):
    frequency = LiteFrequency.DAILY
    approx_days = 1

    def period_start(self, value: datetime) -> datetime:
        return self._midnight(value.date(), value)

    def advance(self, anchor: datetime, steps: int) -> datetime:
        return anchor + timedelta(days=steps)

    def candidates(self, rule: LiteRecurrenceRule, anchor: datetime, dtstart: datetime) -> list[datetime]:
        return [at_time_of(anchor.date(), dtstart)]


class _WeeklyHandler(_FrequencyHandler):
    frequency = LiteFrequency.WEEKLY
    approx_days = 7

    def period_start(self, value: datetime) -> datetime:
        return self._midnight(value.date() - timedelta(days=value.weekday()), value)

    def advance(self, anchor: datetime, steps: int) -> datetime:
        return anchor + timedelta(weeks=steps)

    def candidates(self, rule: LiteRecurrenceRule, anchor: datetime, dtstart: datetime) -> list[datetime]:
        # Ordinals have no meaning inside a week; only the weekday is used
        weekdays = [selector.weekday for selector in rule.by_day] or [dtstart.weekday()]
        monday = anchor.date()
        return [at_time_of(monday + timedelta(days=weekday), dtstart) for weekday in weekdays]


class _MonthlyHandler(_FrequencyHandler):
    frequency = LiteFrequency.MONTHLY
    approx_days = 30

    def period_start(self, value: datetime) -> datetime:
        return self._midnight(value.date().replace(day=1), value)

    def advance(self, anchor: datetime, steps: int) -> datetime:
        return add_months(anchor, steps)

    def candidates(self, rule: LiteRecurrenceRule, anchor: datetime, dtstart: datetime) -> list[datetime]:
        return month_candidates(rule, anchor.year, anchor.month, dtstart)


class _YearlyHandler(_FrequencyHandler):
    frequency = LiteFrequency.YEARLY
    approx_days = 365

    def period_start(self, value: datetime) -> datetime:
        return self._midnight(date(value.year, 1, 1), value)

    def advance(self, anchor: datetime, steps: int) -> datetime:
        return anchor.replace(year=anchor.year + steps)

    def candidates(self, rule: LiteRecurrenceRule, anchor: datetime, dtstart: datetime) -> list[datetime]:
        months = rule.by_month or (dtstart.month - 1,)
        results: list[datetime] = []
        for zero_based_month in months:
            results.extend(month_candidates(rule, anchor.year, zero_based_month + 1, dtstart))
        return results


FREQUENCY_HANDLERS: dict[LiteFrequency, _FrequencyHandler] = {
    handler.frequency: handler
    for handler in (_DailyHandler(), _WeeklyHandler(), _MonthlyHandler(), _YearlyHandler())
}


def _fast_forward(
    handler: _FrequencyHandler, rule: LiteRecurrenceRule, anchor: datetime, window_start: datetime
) -> datetime:
    """Skip whole periods that end well before the window.

    Stops two approximate periods short of ``window_start`` and never lands
    past it, so variable month and year lengths cannot hide a candidate that
    belongs inside the window.
    """
    approx_period = timedelta(days=handler.approx_days * rule.interval)
    skip = max(0, (window_start - anchor) // approx_period - 2)
    while skip > 0:
        try:
            candidate_anchor = handler.advance(anchor, skip * rule.interval)
        except (OverflowError, ValueError):
            candidate_anchor = None
        if candidate_anchor is not None and candidate_anchor <= window_start:
            logger.debug("Fast-forwarded %d periods to %s", skip, candidate_anchor)
            return candidate_anchor
        skip -= 1
    return anchor


def _make_occurrence(template: LiteCalendarEvent, start: datetime, end: Optional[datetime]) -> LiteCalendarEvent:
    return template.model_copy(
        update={
            "start": start,
            "end": end,
            "rrule": None,
            "exclusions": None,
            "is_expanded_instance": True,
        }
    )


def expand_recurring(
    template: LiteCalendarEvent,
    window_start: datetime,
    window_end: datetime,
    excluded_instants: Collection[datetime] = frozenset(),
    rule: Optional[LiteRecurrenceRule] = None,
    config: Optional[RRuleExpanderConfig] = None,
) -> list[LiteCalendarEvent]:
    """Expand a recurrence template into occurrences overlapping a window.

    Args:
        template: Event record carrying an RRULE
        window_start: Inclusive window start
        window_end: Inclusive window end
        excluded_instants: Occurrence starts to suppress (EXDATEs plus the
            RECURRENCE-IDs of sibling overrides); suppressed instants still
            count toward COUNT
        rule: Pre-parsed rule; parsed from ``template.rrule`` when omitted
        config: Expansion limits

    Returns:
        Occurrences in ascending start order; empty when the template's rule
        cannot be parsed

    Raises:
        ValueError: If window_start is after window_end
    """
    if rule is None:
        rule = parse_rrule(template.rrule)
        if rule is None:
            logger.debug("Template %s has no usable RRULE; no occurrences", template.uid)
            return []

    config = config or RRuleExpanderConfig()
    dtstart = template.start

    window_start = align_to_frame(window_start, dtstart)
    window_end = align_to_frame(window_end, dtstart)
    if window_start > window_end:
        raise ValueError(f"window_start {window_start} is after window_end {window_end}")

    until = align_to_frame(rule.until, dtstart) if rule.until is not None else None
    excluded = {align_to_frame(instant, dtstart) for instant in excluded_instants}
    duration = template.duration
    if duration is not None and duration <= timedelta(0):
        # An end at or before the start gives occurrences no end at all
        duration = None

    handler = FREQUENCY_HANDLERS[rule.frequency]
    anchor = handler.period_start(dtstart)

    # Skipping periods would make the COUNT tally wrong, so only without COUNT
    if rule.count is None and anchor < window_start:
        anchor = _fast_forward(handler, rule, anchor, window_start)

    results: list[LiteCalendarEvent] = []
    series_total = 0

    for _ in range(config.max_iterations):
        if anchor > window_end:
            break
        if until is not None and anchor > until:
            break

        for candidate in sorted(set(handler.candidates(rule, anchor, dtstart))):
            if candidate < dtstart:
                continue
            if until is not None and candidate > until:
                return results

            series_total += 1
            if rule.count is not None and series_total > rule.count:
                return results

            if candidate > window_end:
                return results
            if candidate in excluded:
                continue

            end = candidate + duration if duration is not None else None
            if (end or candidate) >= window_start:
                results.append(_make_occurrence(template, candidate, end))

        try:
            anchor = handler.advance(anchor, rule.interval)
        except (OverflowError, ValueError):
            logger.debug("Anchor for %s left the representable date range", template.uid)
            break
    else:
        logger.warning(
            "RRULE expansion for %s stopped at the %d-iteration ceiling",
            template.uid,
            config.max_iterations,
        )

    logger.debug(
        "Expanded %s (%s) into %d occurrences for window %s..%s",
        template.uid,
        rule.frequency.value,
        len(results),
        window_start,
        window_end,
    )
    return results


class LiteRRuleExpander:
    """RRULE expander bound to a settings object."""

    def __init__(self, settings: Any = None):
        """Initialize expander with settings.

        Args:
            settings: Configuration object with ``max_iterations`` (optional)
        """
        self.config = RRuleExpanderConfig.from_settings(settings)

    def expand(
        self,
        template: LiteCalendarEvent,
        window_start: datetime,
        window_end: datetime,
        excluded_instants: Collection[datetime] = frozenset(),
        rule: Optional[LiteRecurrenceRule] = None,
    ) -> list[LiteCalendarEvent]:
        """Expand ``template`` with this expander's configuration."""
        return expand_recurring(
            template, window_start, window_end, excluded_instants, rule=rule, config=self.config
        )

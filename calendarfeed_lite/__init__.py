"""CalendarFeed Lite - iCalendar feed decoding and recurrence expansion."""

from .config_loader import Config, load_config_from_env
from .lite_event_merger import (
    LiteEventMerger,
    collect_excluded_instants,
    default_window,
    default_window_from_settings,
    query_window,
)
from .lite_expansion_cache import LiteExpansionCache
from .lite_models import LiteCalendarEvent, LiteFrequency, LiteRecurrenceRule, LiteWeekdaySelector
from .lite_parser import LiteICSParser, decode_feed
from .lite_rrule_expander import LiteRRuleExpander, RRuleExpanderConfig, expand_recurring
from .lite_rrule_parser import LiteRRuleExpansionError, LiteRRuleParseError, parse_rrule

__version__ = "1.0.0"

__all__ = [
    "Config",
    "LiteCalendarEvent",
    "LiteEventMerger",
    "LiteExpansionCache",
    "LiteFrequency",
    "LiteICSParser",
    "LiteRRuleExpander",
    "LiteRRuleExpansionError",
    "LiteRRuleParseError",
    "LiteRecurrenceRule",
    "LiteWeekdaySelector",
    "RRuleExpanderConfig",
    "collect_excluded_instants",
    "decode_feed",
    "default_window",
    "default_window_from_settings",
    "expand_recurring",
    "load_config_from_env",
    "parse_rrule",
    "query_window",
]

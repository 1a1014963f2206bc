"""icsreader - iCalendar (RFC 5545) reader with recurrence expansion."""

from .config import ConfigurationError, ICSReaderSettings
from .ics import (
    Calendar,
    EventInstance,
    ICSError,
    ICSParseError,
    ICSParser,
    ICSParseResult,
    RRuleParseError,
    SortKey,
    SortOrder,
    sort_events,
)
from .timezone import TimezoneError

__version__ = "1.0.0"
__description__ = "iCalendar reader with recurrence expansion and timezone normalization"

__all__ = [
    "Calendar",
    "ConfigurationError",
    "EventInstance",
    "ICSError",
    "ICSParseError",
    "ICSParseResult",
    "ICSParser",
    "ICSReaderSettings",
    "RRuleParseError",
    "SortKey",
    "SortOrder",
    "TimezoneError",
    "__description__",
    "__version__",
    "sort_events",
]

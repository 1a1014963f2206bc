"""iCalendar parsing, recurrence expansion and event querying."""

from .exceptions import (
    ICSDateTimeError,
    ICSError,
    ICSParseError,
    RRuleParseError,
)
from .models import (
    Attendee,
    Calendar,
    ComponentInstance,
    ComponentKind,
    DiagnosticKind,
    EventClass,
    EventInstance,
    EventStatus,
    Frequency,
    Geo,
    ICSParseResult,
    ParseDiagnostic,
    PropertyKind,
    RawProperty,
    RecurrenceRule,
    Transparency,
)
from .parser import ICSParser
from .query import SortKey, SortOrder, filter_events, sort_events

__all__ = [
    "Attendee",
    "Calendar",
    "ComponentInstance",
    "ComponentKind",
    "DiagnosticKind",
    "EventClass",
    "EventInstance",
    "EventStatus",
    "Frequency",
    "Geo",
    "ICSDateTimeError",
    "ICSError",
    "ICSParseError",
    "ICSParseResult",
    "ICSParser",
    "ParseDiagnostic",
    "PropertyKind",
    "RRuleParseError",
    "RawProperty",
    "RecurrenceRule",
    "SortKey",
    "SortOrder",
    "Transparency",
    "filter_events",
    "sort_events",
]

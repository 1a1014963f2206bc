"""Range filtering and sorting of event occurrences."""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from .models import EventInstance


class SortKey(str, Enum):
    """Instant used to order events."""

    DTSTART = "DTSTART"
    DTEND = "DTEND"
    DTSTAMP = "DTSTAMP"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "ASC"
    DESC = "DESC"


def _require_aware(name: str, bound: Optional[datetime]) -> None:
    if bound is not None and bound.utcoffset() is None:
        raise ValueError(f"{name} must be a timezone-aware datetime, got naive {bound.isoformat()}")


def filter_events(
    events: Iterable[EventInstance],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[EventInstance]:
    """Filter occurrences by independent optional bounds.

    Args:
        events: Occurrences to filter
        start: Keep occurrences whose dtstart is at or after this instant
        end: Keep occurrences whose dtend is at or before this instant; an
            occurrence without dtend is measured by its dtstart

    Returns:
        Matching occurrences in their original order

    Raises:
        ValueError: If a bound is a naive datetime
    """
    _require_aware("start", start)
    _require_aware("end", end)
    return [
        event
        for event in events
        if (start is None or event.dtstart >= start)
        and (end is None or event.end_or_start <= end)
    ]


def sort_key_value(event: EventInstance, key: SortKey) -> datetime:
    """Return the instant an event is sorted by; DTEND falls back to DTSTART."""
    if key == SortKey.DTSTAMP:
        return event.dtstamp
    if key == SortKey.DTEND:
        return event.end_or_start
    return event.dtstart


def sort_events(
    events: Iterable[EventInstance],
    key: Union[SortKey, str] = SortKey.DTSTART,
    order: Union[SortOrder, str] = SortOrder.ASC,
) -> list[EventInstance]:
    """Sort occurrences by one of their instants.

    Ties on the instant are ordered by UID ascending in both directions, so
    the result does not depend on input order.

    Args:
        events: Occurrences to sort
        key: DTSTART, DTEND or DTSTAMP
        order: ASC or DESC

    Returns:
        New sorted list

    Raises:
        ValueError: If key or order is not a recognized value
    """
    sort_key = SortKey(key.upper() if isinstance(key, str) else key)
    sort_order = SortOrder(order.upper() if isinstance(order, str) else order)

    by_uid = sorted(events, key=lambda event: event.uid)
    return sorted(
        by_uid,
        key=lambda event: sort_key_value(event, sort_key),
        reverse=sort_order == SortOrder.DESC,
    )

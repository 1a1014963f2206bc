"""
Timezone package for icsreader.

Provides centralized timezone handling with a clean public API.

Example usage:
    >>> from icsreader.timezone import utc_offset
    >>> from datetime import datetime
    >>>
    >>> # Offset in effect in New York on a summer afternoon (EDT)
    >>> utc_offset("America/New_York", datetime(2025, 7, 1, 15, 0))
    datetime.timedelta(days=-1, seconds=72000)
"""

from .service import (
    TimezoneError,
    TimezoneService,
    get_timezone_service,
    resolve_timezone,
    utc_offset,
)

__all__ = [
    "TimezoneError",
    "TimezoneService",
    "get_timezone_service",
    "resolve_timezone",
    "utc_offset",
]

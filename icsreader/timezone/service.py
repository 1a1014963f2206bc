"""Core timezone service for icsreader.

Resolves zone identifiers (IANA names, ``UTC``, ``local`` and the Windows
names Outlook writes into TZID parameters) and answers DST-aware UTC offset
queries against the zone's transition data.
"""

import logging
from datetime import datetime, timedelta, timezone as dt_timezone, tzinfo
from typing import ClassVar, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz as dateutil_tz

logger = logging.getLogger(__name__)

LOCAL_TZ_NAME = "local"
UTC_NAMES = frozenset({"UTC", "Z", "GMT", "ETC/UTC", "ETC/GMT"})

TimezoneLike = Union[str, tzinfo]


class TimezoneError(Exception):
    """Raised when timezone operations fail."""


class TimezoneService:
    """Centralized timezone service.

    All zone lookups go through this service so that every part of the
    parser resolves identifiers the same way. Unknown identifiers raise
    :class:`TimezoneError`; there is no fallback zone.
    """

    # Windows timezone names to IANA identifier mapping
    # Common Windows timezones used in ICS files from Outlook/Exchange
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "Arizona Standard Time": "America/Phoenix",
        "GMT Standard Time": "Europe/London",
        "Central European Standard Time": "Europe/Paris",
        "W. Europe Standard Time": "Europe/Berlin",
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "India Standard Time": "Asia/Kolkata",
        "AUS Eastern Standard Time": "Australia/Sydney",
    }

    def __init__(self) -> None:
        """Initialize timezone service."""
        self._cache: dict[str, tzinfo] = {}

    def resolve(self, zone: TimezoneLike) -> tzinfo:
        """Resolve a zone identifier to a tzinfo object.

        Args:
            zone: IANA name, ``UTC``, ``local``, a Windows zone name, or a tzinfo

        Returns:
            tzinfo for the zone

        Raises:
            TimezoneError: If the identifier cannot be resolved
        """
        if isinstance(zone, tzinfo):
            return zone
        if not isinstance(zone, str) or not zone.strip():
            raise TimezoneError(f"Invalid timezone identifier: {zone!r}")

        key = zone.strip()
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        resolved = self._load(key)
        self._cache[key] = resolved
        logger.debug("Resolved timezone %r to %s", key, resolved)
        return resolved

    def _load(self, key: str) -> tzinfo:
        if key.lower() == LOCAL_TZ_NAME:
            local_tz = dateutil_tz.tzlocal()
            if local_tz is None:
                raise TimezoneError("Could not determine the local timezone")
            return local_tz
        if key.upper() in UTC_NAMES:
            return dt_timezone.utc

        iana_name = self.WINDOWS_TZ_MAP.get(key, key)
        try:
            return ZoneInfo(iana_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise TimezoneError(f"Unknown timezone: {key}") from e

    def is_utc(self, zone: TimezoneLike) -> bool:
        """True when the zone is UTC (by name or by object)."""
        if isinstance(zone, str):
            return zone.strip().upper() in UTC_NAMES
        return zone is dt_timezone.utc or getattr(zone, "key", None) == "UTC"

    def utc_offset(self, zone: TimezoneLike, at: datetime) -> timedelta:
        """Return the offset from UTC in effect in a zone at a given time.

        The zone's transition data is consulted, so the result includes DST
        when it applies at that moment.

        Args:
            zone: Zone identifier or tzinfo
            at: Aware instant, or naive wall-clock time in that zone

        Returns:
            UTC offset of the zone at ``at``

        Raises:
            TimezoneError: If the zone cannot be resolved
        """
        tz = self.resolve(zone)
        local = at.astimezone(tz) if at.tzinfo is not None else at.replace(tzinfo=tz)
        offset = local.utcoffset()
        if offset is None:
            raise TimezoneError(f"Timezone {zone!r} has no UTC offset at {at.isoformat()}")
        return offset


_timezone_service: Optional[TimezoneService] = None


def get_timezone_service() -> TimezoneService:
    """Get the shared TimezoneService instance."""
    global _timezone_service  # noqa: PLW0603
    if _timezone_service is None:
        _timezone_service = TimezoneService()
    return _timezone_service


def resolve_timezone(zone: TimezoneLike) -> tzinfo:
    """Resolve a zone identifier with the shared service."""
    return get_timezone_service().resolve(zone)


def utc_offset(zone: TimezoneLike, at: datetime) -> timedelta:
    """DST-aware UTC offset of a zone at ``at`` using the shared service."""
    return get_timezone_service().utc_offset(zone, at)

"""Normalization of iCalendar DATE and DATE-TIME values to absolute instants.

RFC 5545 (section 3.3.5) has three DATE-TIME forms:

* floating: no ``Z`` suffix and no TZID, taken as civil time in the output zone
* UTC absolute: ``Z`` suffix, which overrides any TZID
* local absolute: no ``Z`` and a TZID parameter naming the event's zone
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional, Union

from ..timezone import TimezoneService, get_timezone_service
from ..timezone.service import TimezoneLike
from .exceptions import ICSDateTimeError
from .models import RawProperty

logger = logging.getLogger(__name__)

UTC = timezone.utc

# YYYYMMDD[HHMMSS][Z] once the "T" separator has been removed
ICAL_DATETIME_PATTERN = re.compile(r"^(\d{4})(\d{2})(\d{2})(?:(\d{2})(\d{2})(\d{2}))?(Z)?$", re.I)

# Earliest year that can be represented as an output instant
MIN_REPRESENTABLE_YEAR = 1971

# Returned for values the output instant type cannot hold
NOT_REPRESENTABLE = None


class DateTimeNormalizer:
    """Convert DATE/DATE-TIME text into timezone-aware datetimes.

    Output instants are expressed in the desired zone, which defaults to the
    zone given at construction (``"local"`` unless configured otherwise).
    """

    def __init__(
        self,
        desired_timezone: TimezoneLike = "local",
        timezone_service: Optional[TimezoneService] = None,
    ) -> None:
        """Initialize normalizer.

        Args:
            desired_timezone: Default output zone
            timezone_service: Service used for zone lookups
        """
        self.timezone_service = timezone_service or get_timezone_service()
        self.desired_timezone = desired_timezone

    def normalize(
        self,
        value: Union[str, RawProperty],
        desired_timezone: Optional[TimezoneLike] = None,
        event_timezone: Optional[str] = None,
    ) -> Optional[datetime]:
        """Normalize a DATE or DATE-TIME value.

        Args:
            value: Raw ``YYYYMMDD[THHMMSS][Z]`` text, or a property whose TZID
                parameter names the event zone
            desired_timezone: Output zone, defaults to the normalizer's zone
            event_timezone: Event zone for string input; ignored when a
                property with a TZID parameter is passed

        Returns:
            Aware datetime in the desired zone, or None when the year is 1970
            or earlier and the value cannot be represented

        Raises:
            ICSDateTimeError: If the text is not a DATE or DATE-TIME
            TimezoneError: If the event or desired zone cannot be resolved
        """
        if isinstance(value, RawProperty):
            event_timezone = value.params.get("TZID") or event_timezone
            text = value.values[0] if value.is_multi_valued else value.raw
        else:
            text = value

        fields = self.parse_fields(text)
        if fields is NOT_REPRESENTABLE:
            return NOT_REPRESENTABLE

        naive, is_utc = fields
        desired = self.timezone_service.resolve(
            desired_timezone if desired_timezone is not None else self.desired_timezone
        )

        if is_utc:
            # UTC absolute, converted to the desired zone
            return naive.replace(tzinfo=UTC).astimezone(desired)

        if event_timezone:
            # Local absolute: remove the event zone's offset to get UTC
            offset = self.timezone_service.utc_offset(event_timezone, naive)
            instant = (naive - offset).replace(tzinfo=UTC)
            if self.timezone_service.is_utc(desired):
                return instant
            return instant.astimezone(desired)

        # Floating time is civil time in the desired zone
        return naive.replace(tzinfo=desired)

    @staticmethod
    def parse_fields(text: str) -> Optional[tuple[datetime, bool]]:
        """Extract the civil fields of a DATE/DATE-TIME string.

        Args:
            text: ``YYYYMMDD``, ``YYYYMMDDTHHMMSS`` or ``YYYYMMDDTHHMMSSZ``

        Returns:
            Tuple of (naive datetime, has Z suffix), or None when the year is
            not representable

        Raises:
            ICSDateTimeError: If the text does not match the expected form
        """
        match = ICAL_DATETIME_PATTERN.match(text.strip().replace("T", "").replace("t", ""))
        if match is None:
            raise ICSDateTimeError(f"Invalid DATE-TIME value: {text!r}")

        year, month, day, hour, minute, second, zulu = match.groups()
        if int(year) < MIN_REPRESENTABLE_YEAR:
            logger.debug("DATE-TIME %s predates %d, not representable", text, MIN_REPRESENTABLE_YEAR)
            return NOT_REPRESENTABLE

        try:
            naive = datetime(
                int(year),
                int(month),
                int(day),
                int(hour or 0),
                int(minute or 0),
                int(second or 0),
            )
        except ValueError as e:
            raise ICSDateTimeError(f"Invalid DATE-TIME value: {text!r}") from e

        return naive, zulu is not None

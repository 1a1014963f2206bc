"""Unit tests for DATE/DATE-TIME normalization."""

from datetime import datetime, timedelta, timezone

import pytest

from icsreader.ics.datetime_normalizer import NOT_REPRESENTABLE, DateTimeNormalizer
from icsreader.ics.exceptions import ICSDateTimeError
from icsreader.ics.models import RawProperty
from icsreader.timezone import TimezoneError

UTC = timezone.utc


def prop(raw: str, **params: str) -> RawProperty:
    return RawProperty(name="DTSTART", params=params, raw=raw, value=raw)


class TestDateTimeForms:
    """Test the three DATE-TIME forms."""

    def test_utc_form(self, normalizer: DateTimeNormalizer) -> None:
        result = normalizer.normalize("20250110T090000Z")

        assert result == datetime(2025, 1, 10, 9, 0, tzinfo=UTC)
        assert result.utcoffset() == timedelta(0)

    def test_utc_form_converted_to_desired_zone(self, normalizer: DateTimeNormalizer) -> None:
        result = normalizer.normalize("20250110T090000Z", desired_timezone="Europe/Berlin")

        assert result is not None
        assert result.hour == 10
        assert result.utcoffset() == timedelta(hours=1)
        assert result == datetime(2025, 1, 10, 9, 0, tzinfo=UTC)

    def test_floating_form_is_civil_time_in_desired_zone(
        self, normalizer: DateTimeNormalizer
    ) -> None:
        result = normalizer.normalize("20250110T090000", desired_timezone="America/New_York")

        assert result is not None
        assert result.replace(tzinfo=None) == datetime(2025, 1, 10, 9, 0)
        assert result.utcoffset() == timedelta(hours=-5)

    def test_floating_form_uses_default_zone(self, normalizer: DateTimeNormalizer) -> None:
        assert normalizer.normalize("20250110T090000") == datetime(2025, 1, 10, 9, 0, tzinfo=UTC)

    def test_local_absolute_form_winter(self, normalizer: DateTimeNormalizer) -> None:
        """Test that TZID values subtract the zone's standard offset."""
        result = normalizer.normalize(prop("20250110T090000", TZID="America/New_York"))

        assert result == datetime(2025, 1, 10, 14, 0, tzinfo=UTC)

    def test_local_absolute_form_summer(self, normalizer: DateTimeNormalizer) -> None:
        """Test that TZID values observe daylight saving time."""
        result = normalizer.normalize(prop("20250710T090000", TZID="America/New_York"))

        assert result == datetime(2025, 7, 10, 13, 0, tzinfo=UTC)

    def test_event_timezone_argument(self, normalizer: DateTimeNormalizer) -> None:
        result = normalizer.normalize("20250710T090000", event_timezone="Europe/Berlin")

        assert result == datetime(2025, 7, 10, 7, 0, tzinfo=UTC)

    def test_windows_timezone_name(self, normalizer: DateTimeNormalizer) -> None:
        result = normalizer.normalize(prop("20250110T090000", TZID="Eastern Standard Time"))

        assert result == datetime(2025, 1, 10, 14, 0, tzinfo=UTC)

    def test_z_suffix_overrides_tzid(self, normalizer: DateTimeNormalizer) -> None:
        result = normalizer.normalize(prop("20250110T090000Z", TZID="America/New_York"))

        assert result == datetime(2025, 1, 10, 9, 0, tzinfo=UTC)

    def test_local_absolute_converted_to_desired_zone(self) -> None:
        normalizer = DateTimeNormalizer("Asia/Tokyo")

        result = normalizer.normalize(prop("20250110T090000", TZID="Europe/Berlin"))

        assert result is not None
        assert result.hour == 17
        assert result.utcoffset() == timedelta(hours=9)

    def test_date_only_value(self, normalizer: DateTimeNormalizer) -> None:
        assert normalizer.normalize("20250110") == datetime(2025, 1, 10, tzinfo=UTC)

    def test_multi_valued_property_uses_first_value(self, normalizer: DateTimeNormalizer) -> None:
        exdate = RawProperty(
            name="EXDATE",
            raw="20250110T090000Z,20250111T090000Z",
            value=["20250110T090000Z", "20250111T090000Z"],
        )

        assert normalizer.normalize(exdate) == datetime(2025, 1, 10, 9, 0, tzinfo=UTC)


class TestRepresentableRange:
    """Test the not-representable sentinel."""

    @pytest.mark.parametrize("value", ["19700101T000000Z", "19691231T235959Z", "19000101"])
    def test_year_1970_or_earlier(self, normalizer: DateTimeNormalizer, value: str) -> None:
        assert normalizer.normalize(value) is NOT_REPRESENTABLE

    def test_year_1971_is_representable(self, normalizer: DateTimeNormalizer) -> None:
        assert normalizer.normalize("19710101T000000Z") == datetime(1971, 1, 1, tzinfo=UTC)


class TestInvalidValues:
    """Test malformed values and zones."""

    @pytest.mark.parametrize(
        "value", ["", "not-a-date", "2025-01-10T09:00:00Z", "20250110T0900", "20251310T090000"]
    )
    def test_malformed_value_raises(self, normalizer: DateTimeNormalizer, value: str) -> None:
        with pytest.raises(ICSDateTimeError):
            normalizer.normalize(value)

    def test_unknown_tzid_raises(self, normalizer: DateTimeNormalizer) -> None:
        """Test that an unresolvable TZID is not silently replaced."""
        with pytest.raises(TimezoneError):
            normalizer.normalize(prop("20250110T090000", TZID="Mars/Olympus_Mons"))

    def test_unknown_desired_zone_raises(self, normalizer: DateTimeNormalizer) -> None:
        with pytest.raises(TimezoneError):
            normalizer.normalize("20250110T090000Z", desired_timezone="Not/AZone")


class TestParseFields:
    """Test extraction of civil fields."""

    def test_utc_value(self) -> None:
        assert DateTimeNormalizer.parse_fields("20250110T090000Z") == (
            datetime(2025, 1, 10, 9, 0),
            True,
        )

    def test_floating_value(self) -> None:
        assert DateTimeNormalizer.parse_fields(" 20250110T090000 ") == (
            datetime(2025, 1, 10, 9, 0),
            False,
        )

"""Shared fixtures for ICS module tests."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from icsreader.ics.builder import ComponentTreeBuilder
from icsreader.ics.datetime_normalizer import DateTimeNormalizer
from icsreader.ics.models import ComponentInstance
from icsreader.ics.parser import ICSParser
from icsreader.ics.projector import EventProjector
from icsreader.ics.rrule_expander import DEFAULT_RECURRENCE_CUTOFF, RRuleExpander

UTC = timezone.utc

# ============================================================================
# Settings and Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """Create mock settings object with UTC output and default limits."""
    settings = Mock()
    settings.default_timezone = "UTC"
    settings.enable_rrule_expansion = True
    settings.recurrence_cutoff = DEFAULT_RECURRENCE_CUTOFF
    settings.rrule_max_occurrences = 5000
    return settings


@pytest.fixture
def normalizer() -> DateTimeNormalizer:
    """Create a normalizer producing UTC instants."""
    return DateTimeNormalizer("UTC")


@pytest.fixture
def expander(test_settings, normalizer) -> RRuleExpander:
    """Create RRuleExpander instance."""
    return RRuleExpander(test_settings, normalizer)


@pytest.fixture
def projector(normalizer, expander) -> EventProjector:
    """Create EventProjector instance."""
    return EventProjector(normalizer, expander)


@pytest.fixture
def parser(test_settings) -> ICSParser:
    """Create ICSParser instance."""
    return ICSParser(test_settings)


@pytest.fixture
def build_vevent():
    """Return a helper that builds one VEVENT component from property lines."""

    def _build(*lines: str) -> ComponentInstance:
        tree = ComponentTreeBuilder().build(["BEGIN:VEVENT", *lines, "END:VEVENT"])
        return tree.components["VEVENT"][0]  # type: ignore[index]

    return _build


# ============================================================================
# ICS Content Fixtures
# ============================================================================


def _ics(*lines: str) -> str:
    return "\r\n".join(lines) + "\r\n"


@pytest.fixture
def sample_ics_content() -> str:
    """Calendar with one single event and one daily event with five occurrences."""
    return _ics(
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//icsreader//Test Calendar//EN",
        "X-WR-CALNAME:Team Calendar",
        "X-WR-TIMEZONE:Europe/Berlin",
        "BEGIN:VEVENT",
        "UID:single-1@example.com",
        "DTSTAMP:20250101T120000Z",
        "DTSTART:20250110T090000Z",
        "DTEND:20250110T100000Z",
        "SUMMARY:Planning",
        "LOCATION:Room 1",
        "STATUS:CONFIRMED",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:daily-1@example.com",
        "DTSTAMP:20250101T120000Z",
        "DTSTART:20250105T080000Z",
        "DTEND:20250105T083000Z",
        "SUMMARY:Standup",
        "RRULE:FREQ=DAILY;COUNT=5",
        "END:VEVENT",
        "END:VCALENDAR",
    )


@pytest.fixture
def missing_dtstart_ics_content() -> str:
    """Three events where the middle one has no DTSTART."""
    return _ics(
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "BEGIN:VEVENT",
        "UID:first@example.com",
        "DTSTAMP:20250101T120000Z",
        "DTSTART:20250110T090000Z",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:broken@example.com",
        "DTSTAMP:20250101T120000Z",
        "SUMMARY:No start",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "UID:third@example.com",
        "DTSTAMP:20250101T120000Z",
        "DTSTART:20250112T090000Z",
        "END:VEVENT",
        "END:VCALENDAR",
    )


@pytest.fixture
def timezone_ics_content() -> str:
    """Calendar with a VTIMEZONE block, a TZID event, a VTODO and an alarm."""
    return _ics(
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//icsreader//Timezones//EN",
        "BEGIN:VTIMEZONE",
        "TZID:America/New_York",
        "BEGIN:STANDARD",
        "DTSTART:19701101T020000",
        "TZOFFSETFROM:-0400",
        "TZOFFSETTO:-0500",
        "END:STANDARD",
        "BEGIN:DAYLIGHT",
        "DTSTART:19700308T020000",
        "TZOFFSETFROM:-0500",
        "TZOFFSETTO:-0400",
        "END:DAYLIGHT",
        "END:VTIMEZONE",
        "BEGIN:VEVENT",
        "UID:ny-meeting@example.com",
        "DTSTAMP:20250101T120000Z",
        "DTSTART;TZID=America/New_York:20250710T090000",
        "DTEND;TZID=America/New_York:20250710T100000",
        "SUMMARY:Quarterly plan",
        " ning",
        "ATTENDEE;CN=Jane Doe;ROLE=REQ-PARTICIPANT:mailto:jane@example.com",
        "ATTENDEE;CN=Bob:mailto:bob@example.com",
        "BEGIN:VALARM",
        "ACTION:DISPLAY",
        "TRIGGER:-PT15M",
        "END:VALARM",
        "END:VEVENT",
        "BEGIN:VTODO",
        "UID:todo-1@example.com",
        "DTSTAMP:20250101T120000Z",
        "SUMMARY:Write minutes",
        "END:VTODO",
        "END:VCALENDAR",
    )


@pytest.fixture
def utc_dt():
    """Return a helper creating UTC datetimes."""

    def _utc(*args: int) -> datetime:
        return datetime(*args, tzinfo=UTC)

    return _utc

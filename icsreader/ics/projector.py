"""Projection of VEVENT components into per-occurrence event records."""

from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional, TypeVar

from icalendar.prop import vDuration

from ..utils.logging import get_logger
from .datetime_normalizer import DateTimeNormalizer
from .exceptions import ICSDateTimeError, RRuleParseError
from .models import (
    Attendee,
    ComponentInstance,
    DiagnosticKind,
    EventClass,
    EventInstance,
    EventStatus,
    Geo,
    ParseDiagnostic,
    PropertyEntry,
    PropertyKind,
    RawProperty,
    RecurrenceRule,
    Transparency,
)
from .rrule_expander import RRuleExpander

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)

REQUIRED_KEYWORDS = ("UID", "DTSTAMP", "DTSTART")

MAILTO_PREFIX = "mailto:"


def _entries(entry: PropertyEntry) -> list[RawProperty]:
    return entry if isinstance(entry, list) else [entry]


def _first(entry: PropertyEntry) -> RawProperty:
    return entry[0] if isinstance(entry, list) else entry


def parse_attendee(prop: RawProperty) -> Attendee:
    """Split a calendar user value into its mailto address and parameters."""
    value = prop.raw.strip()
    mailto = None
    if value.lower().startswith(MAILTO_PREFIX):
        mailto = value[len(MAILTO_PREFIX) :]
    return Attendee(value=value, mailto=mailto, params=dict(prop.params))


def parse_geo(prop: RawProperty) -> Geo:
    """Split ``lat;lon`` into floats.

    Raises:
        ValueError: If the value is not two floats separated by ``;``
    """
    latitude, longitude = prop.raw.split(";")
    return Geo(latitude=float(latitude), longitude=float(longitude))


class _Projection:
    """Field accumulator for one VEVENT."""

    def __init__(self, uid: str, diagnostics: list[ParseDiagnostic]) -> None:
        self.uid = uid
        self.fields: dict[str, Any] = {}
        self.diagnostics = diagnostics

    def add_diagnostic(self, kind: DiagnosticKind, message: str) -> None:
        self.diagnostics.append(
            ParseDiagnostic(kind=kind, message=message, uid=self.uid, component="VEVENT")
        )

    def extend(self, field: str, values: list[Any]) -> None:
        self.fields.setdefault(field, []).extend(values)


class EventProjector:
    """Merge a VEVENT's properties into EventInstance records.

    The template record is built once per VEVENT and then copied for every
    occurrence produced by the recurrence expander.
    """

    def __init__(self, normalizer: DateTimeNormalizer, expander: RRuleExpander) -> None:
        """Initialize projector.

        Args:
            normalizer: Converts DATE-TIME values
            expander: Produces occurrences for RRULE-bearing events
        """
        self.normalizer = normalizer
        self.expander = expander
        self._handlers: dict[PropertyKind, Callable[[_Projection, PropertyEntry], None]] = {
            # Resolved before the property walk
            PropertyKind.UID: self._skip,
            PropertyKind.DTSTAMP: self._skip,
            PropertyKind.DTSTART: self._skip,
            PropertyKind.DTEND: self._skip,
            PropertyKind.DURATION: self._skip,
            # Single-value text
            PropertyKind.SUMMARY: self._text("summary"),
            PropertyKind.DESCRIPTION: self._text("description"),
            PropertyKind.LOCATION: self._text("location"),
            PropertyKind.URL: self._text("url"),
            PropertyKind.RRULE: self._text("rrule"),
            # Closed enumerations
            PropertyKind.STATUS: self._enumerated("status", EventStatus),
            PropertyKind.CLASS: self._enumerated("classification", EventClass),
            PropertyKind.TRANSP: self._enumerated("transparency", Transparency),
            # Flattened multi-value
            PropertyKind.CATEGORIES: self._flatten("categories"),
            PropertyKind.RESOURCES: self._flatten("resources"),
            PropertyKind.COMMENT: self._flatten("comments"),
            PropertyKind.CONTACT: self._flatten("contacts"),
            PropertyKind.ATTACH: self._flatten("attachments"),
            PropertyKind.EXDATE: self._flatten("exdates"),
            PropertyKind.RDATE: self._flatten("rdates"),
            # Calendar users
            PropertyKind.ATTENDEE: self._attendees,
            PropertyKind.ORGANIZER: self._organizer,
            # Numbers and coordinates
            PropertyKind.GEO: self._geo,
            PropertyKind.PRIORITY: self._integer("priority"),
            PropertyKind.SEQUENCE: self._integer("sequence"),
            # Date-times
            PropertyKind.CREATED: self._datetime("created"),
            PropertyKind.LAST_MODIFIED: self._datetime("last_modified"),
            PropertyKind.RECURRENCE_ID: self._datetime("recurrence_id"),
            # Catch-alls
            PropertyKind.EXTENSION: self._extension,
            PropertyKind.OTHER: self._skip,
        }

    def project(
        self, component: ComponentInstance, diagnostics: list[ParseDiagnostic]
    ) -> list[EventInstance]:
        """Produce one EventInstance per occurrence of a VEVENT.

        Args:
            component: VEVENT component instance
            diagnostics: List that recoverable problems are appended to

        Returns:
            Occurrence records; empty when a required property is missing or
            not representable
        """
        uid_prop = component.first("UID")
        uid = uid_prop.raw if uid_prop is not None else None

        missing = [keyword for keyword in REQUIRED_KEYWORDS if component.get(keyword) is None]
        if missing:
            return self._skip_event(diagnostics, uid, f"missing {', '.join(missing)}")

        projection = _Projection(uid or "", diagnostics)
        try:
            dtstamp = self.normalizer.normalize(component.first("DTSTAMP"))  # type: ignore[arg-type]
            dtstart = self.normalizer.normalize(component.first("DTSTART"))  # type: ignore[arg-type]
        except ICSDateTimeError as e:
            return self._skip_event(diagnostics, uid, e.message)
        if dtstamp is None or dtstart is None:
            return self._skip_event(diagnostics, uid, "DTSTAMP or DTSTART is not representable")

        duration = self._duration(projection, component)
        dtend = self._dtend(projection, component, dtstart, duration)

        projection.fields.update(uid=uid, dtstamp=dtstamp, dtstart=dtstart, duration=duration)
        for keyword, entry in component.properties.items():
            handler = self._handlers[PropertyKind.from_keyword(keyword)]
            handler(projection, entry)

        template = EventInstance(**projection.fields)
        rule = self._rule(projection, template.rrule)
        expansion = self.expander.expand(dtstart, dtend, rule)
        if expansion.truncated:
            projection.add_diagnostic(
                DiagnosticKind.OCCURRENCE_LIMIT,
                f"Recurrence expansion stopped after {len(expansion.occurrences)} occurrences",
            )

        return [
            template.model_copy(update={"dtstart": start, "dtend": end})
            for start, end in expansion.occurrences
        ]

    def _skip_event(
        self, diagnostics: list[ParseDiagnostic], uid: Optional[str], reason: str
    ) -> list[EventInstance]:
        message = f"Skipping VEVENT {uid or '<no UID>'}: {reason}"
        logger.warning(message)
        diagnostics.append(
            ParseDiagnostic(
                kind=DiagnosticKind.SKIPPED_EVENT, message=message, uid=uid, component="VEVENT"
            )
        )
        return []

    def _duration(
        self, projection: _Projection, component: ComponentInstance
    ) -> Optional[timedelta]:
        prop = component.first("DURATION")
        if prop is None:
            return None
        try:
            return vDuration.from_ical(prop.raw.strip())
        except ValueError:
            projection.add_diagnostic(
                DiagnosticKind.INVALID_VALUE, f"Invalid DURATION value: {prop.raw!r}"
            )
            return None

    def _dtend(
        self,
        projection: _Projection,
        component: ComponentInstance,
        dtstart: datetime,
        duration: Optional[timedelta],
    ) -> Optional[datetime]:
        prop = component.first("DTEND")
        if prop is not None:
            try:
                return self.normalizer.normalize(prop)
            except ICSDateTimeError as e:
                projection.add_diagnostic(DiagnosticKind.INVALID_VALUE, e.message)
                return None
        if duration is not None:
            return dtstart + duration
        return None

    def _rule(self, projection: _Projection, rrule: Optional[str]) -> Optional[RecurrenceRule]:
        if rrule is None:
            return None
        try:
            return self.expander.parse_rrule_string(rrule)
        except RRuleParseError as e:
            logger.warning("Ignoring RRULE of %s: %s", projection.uid, e.message)
            projection.add_diagnostic(DiagnosticKind.INVALID_RRULE, e.message)
            return None

    # -- Property handlers ---------------------------------------------------

    @staticmethod
    def _skip(projection: _Projection, entry: PropertyEntry) -> None:
        return None

    @staticmethod
    def _text(field: str) -> Callable[[_Projection, PropertyEntry], None]:
        def handle(projection: _Projection, entry: PropertyEntry) -> None:
            projection.fields[field] = _first(entry).raw

        return handle

    @staticmethod
    def _flatten(field: str) -> Callable[[_Projection, PropertyEntry], None]:
        def handle(projection: _Projection, entry: PropertyEntry) -> None:
            for prop in _entries(entry):
                projection.extend(field, prop.values)

        return handle

    @staticmethod
    def _enumerated(field: str, enum_type: type[E]) -> Callable[[_Projection, PropertyEntry], None]:
        def handle(projection: _Projection, entry: PropertyEntry) -> None:
            raw = _first(entry).raw
            try:
                projection.fields[field] = enum_type(raw.strip().upper())
            except ValueError:
                message = f"Omitting {field}: {raw!r} is not a valid {enum_type.__name__}"
                logger.debug(message)
                projection.add_diagnostic(DiagnosticKind.OMITTED_FIELD, message)

        return handle

    @staticmethod
    def _integer(field: str) -> Callable[[_Projection, PropertyEntry], None]:
        def handle(projection: _Projection, entry: PropertyEntry) -> None:
            raw = _first(entry).raw
            try:
                projection.fields[field] = int(raw.strip())
            except ValueError:
                projection.add_diagnostic(
                    DiagnosticKind.INVALID_VALUE, f"Invalid integer for {field}: {raw!r}"
                )

        return handle

    def _datetime(self, field: str) -> Callable[[_Projection, PropertyEntry], None]:
        def handle(projection: _Projection, entry: PropertyEntry) -> None:
            prop = _first(entry)
            try:
                value = self.normalizer.normalize(prop)
            except ICSDateTimeError as e:
                projection.add_diagnostic(DiagnosticKind.INVALID_VALUE, e.message)
                return
            if value is not None:
                projection.fields[field] = value

        return handle

    @staticmethod
    def _attendees(projection: _Projection, entry: PropertyEntry) -> None:
        projection.extend("attendees", [parse_attendee(prop) for prop in _entries(entry)])

    @staticmethod
    def _organizer(projection: _Projection, entry: PropertyEntry) -> None:
        projection.fields["organizer"] = parse_attendee(_first(entry))

    @staticmethod
    def _geo(projection: _Projection, entry: PropertyEntry) -> None:
        prop = _first(entry)
        try:
            projection.fields["geo"] = parse_geo(prop)
        except ValueError:
            projection.add_diagnostic(DiagnosticKind.INVALID_VALUE, f"Invalid GEO value: {prop.raw!r}")

    @staticmethod
    def _extension(projection: _Projection, entry: PropertyEntry) -> None:
        projection.extend("extensions", [(prop.name, prop) for prop in _entries(entry)])

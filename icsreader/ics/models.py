"""Data models for ICS calendar processing."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ComponentKind(str, Enum):
    """Component block kinds that can appear between BEGIN/END lines."""

    VCALENDAR = "VCALENDAR"
    VEVENT = "VEVENT"
    VTODO = "VTODO"
    VJOURNAL = "VJOURNAL"
    VFREEBUSY = "VFREEBUSY"
    VTIMEZONE = "VTIMEZONE"
    STANDARD = "STANDARD"
    DAYLIGHT = "DAYLIGHT"
    VALARM = "VALARM"
    OTHER = "OTHER"

    @classmethod
    def from_name(cls, name: str) -> "ComponentKind":
        """Map a BEGIN/END value to a kind, unknown blocks become OTHER."""
        try:
            return cls(name.upper())
        except ValueError:
            return cls.OTHER


class PropertyKind(str, Enum):
    """Property keywords recognized by the event projector."""

    UID = "UID"
    DTSTAMP = "DTSTAMP"
    DTSTART = "DTSTART"
    DTEND = "DTEND"
    DURATION = "DURATION"
    SUMMARY = "SUMMARY"
    DESCRIPTION = "DESCRIPTION"
    LOCATION = "LOCATION"
    STATUS = "STATUS"
    CLASS = "CLASS"
    TRANSP = "TRANSP"
    CATEGORIES = "CATEGORIES"
    RESOURCES = "RESOURCES"
    COMMENT = "COMMENT"
    CONTACT = "CONTACT"
    ATTACH = "ATTACH"
    ATTENDEE = "ATTENDEE"
    ORGANIZER = "ORGANIZER"
    GEO = "GEO"
    PRIORITY = "PRIORITY"
    SEQUENCE = "SEQUENCE"
    URL = "URL"
    CREATED = "CREATED"
    LAST_MODIFIED = "LAST-MODIFIED"
    RECURRENCE_ID = "RECURRENCE-ID"
    RRULE = "RRULE"
    EXDATE = "EXDATE"
    RDATE = "RDATE"
    EXTENSION = "X-"
    OTHER = "OTHER"

    @classmethod
    def from_keyword(cls, keyword: str) -> "PropertyKind":
        """Classify a property keyword, X- names fall into EXTENSION."""
        keyword = keyword.upper()
        if keyword.startswith("X-"):
            return cls.EXTENSION
        try:
            return cls(keyword)
        except ValueError:
            return cls.OTHER


class RawProperty(BaseModel):
    """A parsed content line: keyword, parameters and raw or split value.

    ``raw`` always holds the unsplit text (including any continuation lines)
    so a continuation can re-split comma-separated values without losing
    escapes.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Upper-cased property keyword")
    params: dict[str, str] = Field(default_factory=dict, description="Parameter mapping")
    raw: str = Field(default="", description="Unsplit value text")
    value: Union[str, list[str]] = Field(default="", description="Single or multi value")

    @property
    def values(self) -> list[str]:
        """Return the value as a list regardless of its shape."""
        if isinstance(self.value, list):
            return list(self.value)
        return [self.value]

    @property
    def is_multi_valued(self) -> bool:
        return isinstance(self.value, list)


PropertyEntry = Union[RawProperty, list[RawProperty]]


class ComponentInstance(BaseModel):
    """One VEVENT/VTODO/VJOURNAL/VFREEBUSY/VALARM block and its properties."""

    kind: ComponentKind
    name: str
    properties: dict[str, PropertyEntry] = Field(default_factory=dict)
    components: list["ComponentInstance"] = Field(
        default_factory=list, description="Nested blocks such as VALARM"
    )

    def get(self, keyword: str) -> Optional[PropertyEntry]:
        return self.properties.get(keyword.upper())

    def first(self, keyword: str) -> Optional[RawProperty]:
        """Return the single property, or the first one of a repeated property."""
        entry = self.get(keyword)
        if isinstance(entry, list):
            return entry[0] if entry else None
        return entry

    def all(self, keyword: str) -> list[RawProperty]:
        """Return every occurrence of a property as a list."""
        entry = self.get(keyword)
        if entry is None:
            return []
        if isinstance(entry, list):
            return list(entry)
        return [entry]

    @property
    def extensions(self) -> list[tuple[str, RawProperty]]:
        """X- properties in document order."""
        return [
            (name, prop)
            for name, entry in self.properties.items()
            if name.startswith("X-")
            for prop in (entry if isinstance(entry, list) else [entry])
        ]


class Frequency(str, Enum):
    """RRULE FREQ values."""

    YEARLY = "YEARLY"
    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"
    DAILY = "DAILY"
    HOURLY = "HOURLY"
    MINUTELY = "MINUTELY"
    SECONDLY = "SECONDLY"

    @property
    def is_time_of_day(self) -> bool:
        return self in (Frequency.HOURLY, Frequency.MINUTELY, Frequency.SECONDLY)


class RecurrenceRule(BaseModel):
    """The subset of an RRULE that drives expansion."""

    model_config = ConfigDict(frozen=True)

    freq: Frequency
    interval: int = Field(default=1, ge=1)
    count: Optional[int] = Field(default=None, ge=1)
    until: Optional[datetime] = None


class EventStatus(str, Enum):
    """VEVENT STATUS values."""

    TENTATIVE = "TENTATIVE"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class EventClass(str, Enum):
    """CLASS (access classification) values."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    CONFIDENTIAL = "CONFIDENTIAL"


class Transparency(str, Enum):
    """TRANSP values."""

    OPAQUE = "OPAQUE"
    TRANSPARENT = "TRANSPARENT"


class Attendee(BaseModel):
    """Calendar user from an ATTENDEE or ORGANIZER line."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Property value as written")
    mailto: Optional[str] = Field(default=None, description="Address after a mailto: prefix")
    params: dict[str, str] = Field(default_factory=dict)

    @property
    def common_name(self) -> Optional[str]:
        return self.params.get("CN")

    @property
    def email(self) -> str:
        return self.mailto if self.mailto is not None else self.value


class Geo(BaseModel):
    """GEO property split into coordinates."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class EventInstance(BaseModel):
    """One concrete occurrence of a VEVENT."""

    model_config = ConfigDict(frozen=True)

    # Required
    uid: str
    dtstamp: datetime
    dtstart: datetime

    # Time span
    dtend: Optional[datetime] = None
    duration: Optional[timedelta] = None

    # Text
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None

    # Enumerated
    status: Optional[EventStatus] = None
    classification: Optional[EventClass] = None
    transparency: Optional[Transparency] = None

    # Multi-valued
    categories: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    comments: list[str] = Field(default_factory=list)
    contacts: list[str] = Field(default_factory=list)
    attachments: list[str] = Field(default_factory=list)
    exdates: list[str] = Field(default_factory=list)
    rdates: list[str] = Field(default_factory=list)

    # People
    attendees: list[Attendee] = Field(default_factory=list)
    organizer: Optional[Attendee] = None

    # Misc
    geo: Optional[Geo] = None
    priority: Optional[int] = None
    sequence: Optional[int] = None
    created: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    recurrence_id: Optional[datetime] = None
    rrule: Optional[str] = None
    extensions: list[tuple[str, RawProperty]] = Field(default_factory=list)

    @property
    def is_recurring(self) -> bool:
        return self.rrule is not None

    @property
    def end_or_start(self) -> datetime:
        """DTEND when present, otherwise DTSTART."""
        return self.dtend if self.dtend is not None else self.dtstart


class DiagnosticKind(str, Enum):
    """Recoverable problems recorded while parsing."""

    SKIPPED_EVENT = "skipped_event"
    OMITTED_FIELD = "omitted_field"
    INVALID_RRULE = "invalid_rrule"
    INVALID_VALUE = "invalid_value"
    ORPHAN_CONTINUATION = "orphan_continuation"
    OCCURRENCE_LIMIT = "occurrence_limit"


class ParseDiagnostic(BaseModel):
    """A recoverable problem found in the document."""

    model_config = ConfigDict(frozen=True)

    kind: DiagnosticKind
    message: str
    uid: Optional[str] = None
    component: Optional[str] = None


ComponentEntry = Union[list[ComponentInstance], dict[str, RawProperty]]


class Calendar(BaseModel):
    """Result of parsing one iCalendar document."""

    model_config = ConfigDict(frozen=True)

    event_count: int = 0
    todo_count: int = 0
    components: dict[str, ComponentEntry] = Field(
        default_factory=dict,
        description="Component type name to instances (VEVENT, VTODO, ...) or scalar bag",
    )
    events: list[EventInstance] = Field(default_factory=list, description="All occurrences")
    diagnostics: list[ParseDiagnostic] = Field(default_factory=list)

    @property
    def properties(self) -> dict[str, RawProperty]:
        """VCALENDAR-level properties."""
        bag = self.components.get(ComponentKind.VCALENDAR.value)
        return bag if isinstance(bag, dict) else {}

    def instances(self, kind: Union[ComponentKind, str]) -> list[ComponentInstance]:
        """Return the component instances of one type, e.g. all VEVENT blocks."""
        name = kind.value if isinstance(kind, ComponentKind) else kind.upper()
        entry = self.components.get(name)
        return entry if isinstance(entry, list) else []

    def _calendar_value(self, keyword: str) -> Optional[str]:
        prop = self.properties.get(keyword)
        if prop is None:
            return None
        return prop.raw

    @property
    def name(self) -> Optional[str]:
        return self._calendar_value("X-WR-CALNAME")

    @property
    def timezone_name(self) -> Optional[str]:
        return self._calendar_value("X-WR-TIMEZONE")

    @property
    def version(self) -> Optional[str]:
        return self._calendar_value("VERSION")

    @property
    def prodid(self) -> Optional[str]:
        return self._calendar_value("PRODID")

    @property
    def skipped_events(self) -> list[ParseDiagnostic]:
        return [d for d in self.diagnostics if d.kind == DiagnosticKind.SKIPPED_EVENT]

    def has_events(self) -> bool:
        return len(self.events) > 0

    def get_events(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[EventInstance]:
        """Return occurrences, optionally bounded by start and/or end.

        Args:
            start: Keep occurrences whose dtstart is at or after this instant
            end: Keep occurrences whose dtend (or dtstart) is at or before this instant

        Returns:
            Occurrences in production order

        Raises:
            ValueError: If a bound is a naive datetime
        """
        from .query import filter_events  # noqa: PLC0415

        return filter_events(self.events, start, end)


class ICSParseResult(BaseModel):
    """Result of a non-raising parse operation."""

    success: bool
    calendar: Optional[Calendar] = None
    events: list[EventInstance] = Field(default_factory=list)

    # Parse statistics
    event_count: int = 0
    todo_count: int = 0
    occurrence_count: int = 0
    recurring_event_count: int = 0

    # Error information
    error_message: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)

    # Parsing metadata
    parse_time: datetime = Field(default_factory=datetime.now)
    ics_version: Optional[str] = None
    prodid: Optional[str] = None

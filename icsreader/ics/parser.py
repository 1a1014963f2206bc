"""iCalendar document parser.

Wires the content-line tokenizer, component tree builder, date/time
normalizer, recurrence expander and event projector into a single
``parse(document) -> Calendar`` operation.
"""

from collections.abc import Iterable, Iterator
from typing import Any, Optional, Union

from ..timezone import TimezoneError, TimezoneService
from ..utils.logging import get_logger
from .builder import ComponentTreeBuilder
from .datetime_normalizer import DateTimeNormalizer
from .exceptions import ICSError, ICSParseError
from .models import Calendar, ComponentKind, EventInstance, ICSParseResult
from .projector import EventProjector
from .rrule_expander import RRuleExpander

logger = get_logger(__name__)

VCALENDAR_MARKER = "BEGIN:VCALENDAR"
BOM = "\ufeff"

Document = Union[str, bytes, Iterable[str]]


def iter_lines(document: Document) -> Iterator[str]:
    """Yield the physical lines of a document.

    Bytes are decoded as UTF-8 and a leading byte order mark is dropped.
    Lines end at LF only (the builder strips the CR of CRLF), so separators
    such as U+2028 or form feed stay inside TEXT values.

    Raises:
        ICSParseError: If bytes are not valid UTF-8
    """
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            line_number = e.object.count(b"\n", 0, e.start) + 1
            raise ICSParseError(f"Invalid UTF-8: {e.reason}", line_number=line_number) from e
    if isinstance(document, str):
        yield from document.lstrip(BOM).split("\n")
        return
    for index, line in enumerate(document):
        yield line.lstrip(BOM) if index == 0 else line


class ICSParser:
    """iCalendar parser producing a :class:`Calendar` of event occurrences."""

    def __init__(self, settings: Any = None) -> None:
        """Initialize ICS parser with settings.

        Args:
            settings: Parser settings; defaults are used when omitted
        """
        self.settings = settings
        self.timezone_service = TimezoneService()
        self.normalizer = DateTimeNormalizer(
            getattr(settings, "default_timezone", "local"), self.timezone_service
        )
        self.rrule_expander = RRuleExpander(settings, self.normalizer)
        self.projector = EventProjector(self.normalizer, self.rrule_expander)

    def parse(self, document: Document) -> Calendar:
        """Parse an iCalendar document.

        Args:
            document: Document text, UTF-8 bytes or an iterable of lines

        Returns:
            Parsed calendar with every event occurrence

        Raises:
            ICSParseError: If the document is empty, is not valid UTF-8 or does
                not start with BEGIN:VCALENDAR
            TimezoneError: If a TZID or the output zone cannot be resolved
        """
        lines = iter_lines(document)

        first_line = next((line for line in lines if line.strip()), None)
        if first_line is None:
            raise ICSParseError("Empty ICS content")
        if VCALENDAR_MARKER not in first_line.upper():
            raise ICSParseError("Missing BEGIN:VCALENDAR marker", line_number=1)

        builder = ComponentTreeBuilder()
        builder.feed(first_line.strip())
        tree = builder.build(lines)

        diagnostics = list(tree.diagnostics)
        events: list[EventInstance] = []
        for component in tree.components.get(ComponentKind.VEVENT.value, []):
            events.extend(self.projector.project(component, diagnostics))  # type: ignore[arg-type]

        calendar = Calendar(
            event_count=tree.event_count,
            todo_count=tree.todo_count,
            components=tree.components,
            events=events,
            diagnostics=diagnostics,
        )

        logger.debug(
            "Parsed %d occurrences from %d VEVENT(s), %d VTODO(s), %d diagnostic(s)",
            len(events),
            tree.event_count,
            tree.todo_count,
            len(diagnostics),
        )
        return calendar

    def parse_ics_content(self, document: Document) -> ICSParseResult:
        """Parse a document without raising.

        Args:
            document: Document text, UTF-8 bytes or an iterable of lines

        Returns:
            Parse result with the calendar, statistics and warnings, or the
            error message when parsing failed
        """
        try:
            calendar = self.parse(document)
        except (ICSError, TimezoneError) as e:
            logger.warning(f"Failed to parse ICS content: {e}")
            return ICSParseResult(success=False, error_message=str(e))

        recurring_uids = {event.uid for event in calendar.events if event.is_recurring}
        return ICSParseResult(
            success=True,
            calendar=calendar,
            events=calendar.events,
            event_count=calendar.event_count,
            todo_count=calendar.todo_count,
            occurrence_count=len(calendar.events),
            recurring_event_count=len(recurring_uids),
            warnings=[diagnostic.message for diagnostic in calendar.diagnostics],
            ics_version=calendar.version,
            prodid=calendar.prodid,
        )

    def validate_ics_content(self, document: Optional[Document]) -> bool:
        """Check that a document is non-empty and starts with BEGIN:VCALENDAR."""
        if document is None:
            return False
        try:
            first_line = next((line for line in iter_lines(document) if line.strip()), None)
        except ICSParseError as e:
            logger.debug(f"ICS validation failed: {e}")
            return False
        if first_line is None:
            logger.debug("ICS validation failed: empty content")
            return False
        if VCALENDAR_MARKER not in first_line.upper():
            logger.debug("ICS validation failed: missing BEGIN:VCALENDAR marker")
            return False
        return True

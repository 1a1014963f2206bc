"""Component tree builder for iCalendar documents.

Consumes content lines one at a time, tracks BEGIN/END nesting and collects
properties into per-component property bags. Properties that may legally
repeat inside one component ("multi-line multi-value") are kept as ordered
lists, and properties whose single line holds a comma-separated list
("single-line multi-value") are split into their elements.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional, Union

from .content_line import is_folded, parse_content_line
from .models import (
    ComponentEntry,
    ComponentInstance,
    ComponentKind,
    DiagnosticKind,
    ParseDiagnostic,
    RawProperty,
)

logger = logging.getLogger(__name__)

# Keywords that may repeat in any component
MLMV_GLOBAL_KEYWORDS = frozenset({"ATTENDEE", "COMMENT", "RSTATUS"})

# Keywords that may repeat only inside the listed components
MLMV_COMPONENT_KEYWORDS: dict[str, frozenset[ComponentKind]] = {
    "ATTACH": frozenset(
        {ComponentKind.VEVENT, ComponentKind.VTODO, ComponentKind.VJOURNAL, ComponentKind.VALARM}
    ),
    "CATEGORIES": frozenset({ComponentKind.VEVENT, ComponentKind.VTODO, ComponentKind.VJOURNAL}),
    "CONTACT": frozenset({ComponentKind.VEVENT, ComponentKind.VTODO, ComponentKind.VJOURNAL}),
    "EXDATE": frozenset({ComponentKind.VEVENT, ComponentKind.VTODO, ComponentKind.VJOURNAL}),
    "RELATED-TO": frozenset({ComponentKind.VEVENT, ComponentKind.VTODO, ComponentKind.VJOURNAL}),
    "RESOURCES": frozenset({ComponentKind.VEVENT, ComponentKind.VTODO}),
    "RDATE": frozenset({ComponentKind.VEVENT, ComponentKind.VTODO, ComponentKind.VJOURNAL}),
}

# Keywords that may repeat only inside one specific component
MLMV_SECTION_KEYWORDS: dict[ComponentKind, frozenset[str]] = {
    ComponentKind.VFREEBUSY: frozenset({"FREEBUSY"}),
    ComponentKind.VJOURNAL: frozenset({"DESCRIPTION"}),
}

# Keywords whose single line is a comma-separated list
SLMV_KEYWORDS = frozenset({"EXDATE", "RDATE", "FREEBUSY", "CATEGORIES", "RESOURCES"})

# Components collected as ordered instance lists at calendar level
INSTANCE_COMPONENTS = frozenset(
    {ComponentKind.VEVENT, ComponentKind.VTODO, ComponentKind.VJOURNAL, ComponentKind.VFREEBUSY}
)


def is_mlmv(kind: ComponentKind, keyword: str) -> bool:
    """Check whether a keyword may appear on several lines of one component.

    Args:
        kind: Component the keyword appears in
        keyword: Property keyword

    Returns:
        True if each occurrence should be appended rather than overwrite
    """
    keyword = keyword.upper()

    if kind == ComponentKind.VALARM:
        return keyword == "ATTACH"
    if kind == ComponentKind.VTIMEZONE:
        return False

    if keyword in MLMV_GLOBAL_KEYWORDS:
        return True
    if kind in MLMV_COMPONENT_KEYWORDS.get(keyword, frozenset()):
        return True
    if keyword in MLMV_SECTION_KEYWORDS.get(kind, frozenset()):
        return True
    return keyword.startswith("X-")


def is_slmv(keyword: str) -> bool:
    """Check whether a keyword holds a comma-separated list on one line."""
    return keyword.upper() in SLMV_KEYWORDS


def _ends_with_escape(text: str) -> bool:
    trailing = len(text) - len(text.rstrip("\\"))
    return trailing % 2 == 1


def split_multi_value(text: str) -> list[str]:
    """Split a comma-separated value, honoring backslash-escaped commas.

    ``A,B\\,C,D`` yields ``["A", "B,C", "D"]``. Each element is trimmed.
    """
    pieces = text.split(",")
    values = []
    index = 0
    while index < len(pieces):
        value = pieces[index]
        while _ends_with_escape(value) and index + 1 < len(pieces):
            index += 1
            value = value[:-1] + "," + pieces[index]
        values.append(value.strip())
        index += 1
    return values


def _make_property(name: str, params: dict[str, str], raw: str) -> RawProperty:
    value: Union[str, list[str]] = split_multi_value(raw) if is_slmv(name) else raw
    return RawProperty(name=name, params=params, raw=raw, value=value)


@dataclass
class _Frame:
    """One open BEGIN block."""

    kind: ComponentKind
    name: str
    properties: dict[str, object]
    instance: Optional[ComponentInstance] = None

    @property
    def allows_mlmv(self) -> bool:
        # Scalar bags (VCALENDAR, VTIMEZONE, ...) keep one value per keyword
        return self.instance is not None


@dataclass
class _Cursor:
    """The most recently written property, target of continuation lines."""

    frame: _Frame
    keyword: str
    index: Optional[int] = None


@dataclass
class ComponentTree:
    """Output of the builder: counters, component mapping and diagnostics."""

    event_count: int = 0
    todo_count: int = 0
    components: dict[str, ComponentEntry] = field(default_factory=dict)
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)


class ComponentTreeBuilder:
    """Build the nested component tree from iCalendar lines.

    One builder handles one document; continuation state lives on the
    instance.
    """

    def __init__(self) -> None:
        self._tree = ComponentTree()
        self._stack: list[_Frame] = []
        self._cursor: Optional[_Cursor] = None
        self._line_number = 0

    @property
    def tree(self) -> ComponentTree:
        return self._tree

    def build(self, lines: Iterable[str]) -> ComponentTree:
        """Feed every physical line and return the finished tree."""
        for line in lines:
            self.feed(line)
        if len(self._stack) > 0:
            logger.debug(
                "Document ended with %d unclosed block(s): %s",
                len(self._stack),
                [frame.name for frame in self._stack],
            )
        return self._tree

    def feed(self, physical_line: str) -> None:
        """Process one physical line of the document."""
        self._line_number += 1
        physical_line = physical_line.rstrip("\r\n")

        if is_folded(physical_line):
            if physical_line.strip():
                self._continue(physical_line[1:])
            return

        line = physical_line.strip()
        if not line:
            return

        content = parse_content_line(line)
        if content is None:
            self._continue(line)
            return

        if content.name == "BEGIN":
            self._begin(content.value.strip().upper())
        elif content.name == "END":
            self._end(content.value.strip().upper())
        else:
            self._assign(content.name, content.params, content.value)

    # -- BEGIN / END ---------------------------------------------------------

    def _begin(self, name: str) -> None:
        kind = ComponentKind.from_name(name)

        if kind == ComponentKind.VEVENT:
            self._tree.event_count += 1
        elif kind == ComponentKind.VTODO:
            self._tree.todo_count += 1

        parent = self._current_frame()
        if kind in INSTANCE_COMPONENTS or (
            kind == ComponentKind.VALARM and parent.instance is not None
        ):
            instance = ComponentInstance(kind=kind, name=name)
            if kind == ComponentKind.VALARM and parent.instance is not None:
                parent.instance.components.append(instance)
            else:
                instances = self._tree.components.setdefault(name, [])
                instances.append(instance)  # type: ignore[union-attr]
            frame = _Frame(kind=kind, name=name, properties=instance.properties, instance=instance)
        else:
            frame = _Frame(kind=kind, name=name, properties=self._scalar_bag(name))

        self._stack.append(frame)
        self._cursor = None

    def _end(self, name: str) -> None:
        if not self._stack:
            logger.debug("Ignoring END:%s without matching BEGIN (line %d)", name, self._line_number)
            return
        frame = self._stack.pop()
        if frame.name != name:
            logger.debug(
                "END:%s closes BEGIN:%s (line %d)", name, frame.name, self._line_number
            )
        self._cursor = None

    # -- Property assignment -------------------------------------------------

    def _assign(self, keyword: str, params: dict[str, str], raw: str) -> None:
        frame = self._current_frame()
        prop = _make_property(keyword, params, raw)

        if frame.allows_mlmv and is_mlmv(frame.kind, keyword):
            entries = frame.properties.get(keyword)
            if not isinstance(entries, list):
                entries = []
                frame.properties[keyword] = entries
            entries.append(prop)
            self._cursor = _Cursor(frame=frame, keyword=keyword, index=len(entries) - 1)
        else:
            frame.properties[keyword] = prop
            self._cursor = _Cursor(frame=frame, keyword=keyword)

    def _continue(self, text: str) -> None:
        cursor = self._cursor
        if cursor is None:
            message = f"Continuation line {self._line_number} has no property to extend"
            logger.warning(message)
            self._tree.diagnostics.append(
                ParseDiagnostic(
                    kind=DiagnosticKind.ORPHAN_CONTINUATION,
                    message=message,
                    component=self._current_frame().name,
                )
            )
            return

        properties = cursor.frame.properties
        if cursor.index is not None:
            entries = properties[cursor.keyword]
            previous = entries[cursor.index]  # type: ignore[index]
            entries[cursor.index] = self._extend(previous, text)  # type: ignore[index]
        else:
            properties[cursor.keyword] = self._extend(
                properties[cursor.keyword], text  # type: ignore[arg-type]
            )

    @staticmethod
    def _extend(prop: RawProperty, text: str) -> RawProperty:
        return _make_property(prop.name, dict(prop.params), prop.raw + text)

    # -- Helpers -------------------------------------------------------------

    def _scalar_bag(self, name: str) -> dict[str, object]:
        bag = self._tree.components.get(name)
        if not isinstance(bag, dict):
            bag = {}
            self._tree.components[name] = bag
        return bag  # type: ignore[return-value]

    def _current_frame(self) -> _Frame:
        if self._stack:
            return self._stack[-1]
        # Lines outside any block are calendar-level properties
        name = ComponentKind.VCALENDAR.value
        return _Frame(kind=ComponentKind.VCALENDAR, name=name, properties=self._scalar_bag(name))

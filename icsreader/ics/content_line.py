"""Content-line tokenizer for iCalendar text.

Turns one logical line such as ``DTSTART;TZID=Europe/Berlin:20250101T090000``
into a :class:`ContentLine`, or reports that the line carries no top-level
colon and therefore continues the previous property value.
"""

from typing import NamedTuple, Optional

FOLD_CHARACTERS = (" ", "\t")


class ContentLine(NamedTuple):
    """Keyword, parameters and raw value of one content line."""

    name: str
    params: dict[str, str]
    value: str


def _find_unquoted(text: str, separator: str, start: int = 0) -> int:
    """Return the index of the first separator outside double quotes, or -1."""
    in_quotes = False
    for index in range(start, len(text)):
        char = text[index]
        if char == '"':
            in_quotes = not in_quotes
        elif char == separator and not in_quotes:
            return index
    return -1


def _split_unquoted(text: str, separator: str) -> list[str]:
    parts = []
    start = 0
    while True:
        index = _find_unquoted(text, separator, start)
        if index == -1:
            parts.append(text[start:])
            return parts
        parts.append(text[start:index])
        start = index + 1


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_parameters(segments: list[str]) -> dict[str, str]:
    """Parse ``NAME=VALUE`` parameter segments into a mapping.

    Names are upper-cased, quoted values lose their quotes and a segment
    without ``=`` maps to the empty string. Later duplicates win.
    """
    params: dict[str, str] = {}
    for segment in segments:
        if not segment:
            continue
        key, _, value = segment.partition("=")
        params[key.strip().upper()] = _unquote(value)
    return params


def parse_keyword(keyword: str) -> tuple[str, dict[str, str]]:
    """Split ``NAME;P1=V1;P2=V2`` into the bare name and its parameters."""
    segments = _split_unquoted(keyword, ";")
    return segments[0].strip().upper(), parse_parameters(segments[1:])


def parse_content_line(line: str) -> Optional[ContentLine]:
    """Parse one trimmed line of text.

    Args:
        line: Logical line with surrounding whitespace removed

    Returns:
        The parsed content line, or None when no top-level colon exists and
        the text continues the previous property's value
    """
    colon = _find_unquoted(line, ":")
    if colon <= 0:
        return None

    name, params = parse_keyword(line[:colon])
    if not name:
        return None
    return ContentLine(name=name, params=params, value=line[colon + 1 :])


def is_folded(physical_line: str) -> bool:
    """True when a physical line is an RFC 5545 folded continuation."""
    return physical_line.startswith(FOLD_CHARACTERS)

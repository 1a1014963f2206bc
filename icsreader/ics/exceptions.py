"""ICS-specific exceptions for error handling."""

from typing import Optional


class ICSError(Exception):
    """Base exception for ICS-related errors."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number


class ICSParseError(ICSError):
    """Exception raised when ICS content cannot be parsed."""


class RRuleParseError(ICSError):
    """Exception raised when an RRULE value cannot be parsed."""


class ICSDateTimeError(ICSError):
    """Exception raised when a DATE or DATE-TIME value is malformed."""

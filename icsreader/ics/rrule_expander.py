"""RRULE expansion logic for the icsreader ICS parser."""

from collections.abc import Iterator
from datetime import datetime, timezone
from itertools import islice
from typing import Any, NamedTuple, Optional

from dateutil.relativedelta import relativedelta

from ..utils.logging import get_logger
from .datetime_normalizer import DateTimeNormalizer
from .exceptions import ICSDateTimeError, RRuleParseError
from .models import Frequency, RecurrenceRule

UTC = timezone.utc

# Forward bound for rules with neither COUNT nor UNTIL (signed 32-bit epoch limit)
DEFAULT_RECURRENCE_CUTOFF = datetime(2038, 1, 19, 3, 14, 7, tzinfo=UTC)
DEFAULT_MAX_OCCURRENCES = 5000

# UNTIL values that cannot be represented clamp to the epoch
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

logger = get_logger(__name__)

Occurrence = tuple[datetime, Optional[datetime]]


class RecurrenceExpansion(NamedTuple):
    """Occurrences produced for one event."""

    occurrences: list[Occurrence]
    truncated: bool = False


def step_for(rule: RecurrenceRule) -> relativedelta:
    """Return the calendrical increment between two occurrences of a rule."""
    n = rule.interval
    steps = {
        Frequency.YEARLY: relativedelta(years=n),
        Frequency.MONTHLY: relativedelta(months=n),
        Frequency.WEEKLY: relativedelta(weeks=n),
        Frequency.DAILY: relativedelta(days=n),
        Frequency.HOURLY: relativedelta(hours=n),
        Frequency.MINUTELY: relativedelta(minutes=n),
        Frequency.SECONDLY: relativedelta(seconds=n),
    }
    return steps[rule.freq]


def shift(instant: datetime, rule: RecurrenceRule, index: int) -> datetime:
    """Return ``instant`` moved by ``index`` steps of the rule.

    Date frequencies keep the wall-clock time in the instant's zone; time
    frequencies step in absolute time.
    """
    offset = step_for(rule) * index
    if rule.freq.is_time_of_day and instant.tzinfo is not None:
        return (instant.astimezone(UTC) + offset).astimezone(instant.tzinfo)
    return instant + offset


class RRuleExpander:
    """Client-side RRULE expansion.

    Handles FREQ, INTERVAL, COUNT and UNTIL. Other rule parts are accepted
    and ignored.
    """

    def __init__(
        self,
        settings: Any = None,
        normalizer: Optional[DateTimeNormalizer] = None,
    ) -> None:
        """Initialize RRuleExpander with settings.

        Args:
            settings: Parser settings (expansion switch, cutoff, occurrence cap)
            normalizer: Normalizer used to convert UNTIL values
        """
        self.settings = settings
        self.enable_expansion = getattr(settings, "enable_rrule_expansion", True)
        self.cutoff: datetime = getattr(settings, "recurrence_cutoff", DEFAULT_RECURRENCE_CUTOFF)
        self.max_occurrences: int = getattr(
            settings, "rrule_max_occurrences", DEFAULT_MAX_OCCURRENCES
        )
        self.normalizer = normalizer or DateTimeNormalizer(
            getattr(settings, "default_timezone", "local")
        )
        if self.cutoff.tzinfo is None:
            self.cutoff = self.cutoff.replace(tzinfo=UTC)

    def parse_rrule_string(self, rrule_string: str) -> RecurrenceRule:
        """Parse RRULE string into a rule descriptor.

        Args:
            rrule_string: RRULE value (e.g. "FREQ=WEEKLY;INTERVAL=2;COUNT=10")

        Returns:
            Parsed recurrence rule

        Raises:
            RRuleParseError: If RRULE string is invalid
        """
        if not rrule_string or not rrule_string.strip():
            raise RRuleParseError("Empty RRULE string")

        parts: dict[str, str] = {}
        for part in rrule_string.strip().split(";"):
            if "=" not in part:
                continue
            key, value = part.split("=", 1)
            parts[key.strip().upper()] = value.strip()

        if "FREQ" not in parts:
            raise RRuleParseError(f"RRULE missing required FREQ parameter: {rrule_string}")

        try:
            freq = Frequency(parts["FREQ"].upper())
        except ValueError as e:
            raise RRuleParseError(f"Unsupported frequency: {parts['FREQ']}") from e

        interval = self._positive_int(parts, "INTERVAL", rrule_string) or 1
        count = self._positive_int(parts, "COUNT", rrule_string)

        until = None
        if "UNTIL" in parts:
            try:
                until = self.normalizer.normalize(parts["UNTIL"])
            except ICSDateTimeError as e:
                raise RRuleParseError(f"Invalid UNTIL in RRULE: {rrule_string}") from e
            if until is None:
                until = EPOCH

        ignored = sorted(set(parts) - {"FREQ", "INTERVAL", "COUNT", "UNTIL"})
        if ignored:
            logger.debug("RRULE parts not used for expansion: %s", ", ".join(ignored))

        return RecurrenceRule(freq=freq, interval=interval, count=count, until=until)

    @staticmethod
    def _positive_int(parts: dict[str, str], key: str, rrule_string: str) -> Optional[int]:
        if key not in parts:
            return None
        try:
            value = int(parts[key])
        except ValueError as e:
            raise RRuleParseError(f"Invalid {key} in RRULE: {rrule_string}") from e
        if value < 1:
            raise RRuleParseError(f"{key} must be positive in RRULE: {rrule_string}")
        return value

    def should_continue(self, rule: RecurrenceRule, index: int, dtstart: datetime) -> bool:
        """Decide whether the occurrence at ``index`` is part of the rule.

        COUNT is checked first, then UNTIL, then the forward cutoff.

        Args:
            rule: Recurrence rule
            index: Zero-based index of the candidate occurrence
            dtstart: Start of the candidate occurrence

        Returns:
            True if the candidate should be emitted
        """
        if rule.count is not None:
            return index < rule.count
        if rule.until is not None:
            return dtstart <= rule.until
        return dtstart < self.cutoff

    def iter_occurrences(
        self,
        dtstart: datetime,
        dtend: Optional[datetime],
        rule: Optional[RecurrenceRule],
    ) -> Iterator[Occurrence]:
        """Yield (start, end) pairs for an event.

        The event's own span is always the first occurrence. Without a rule,
        or with expansion disabled, it is the only one.
        """
        yield dtstart, dtend
        if rule is None or not self.enable_expansion:
            return

        index = 1
        while True:
            start = shift(dtstart, rule, index)
            if not self.should_continue(rule, index, start):
                return
            end = shift(dtend, rule, index) if dtend is not None else None
            yield start, end
            index += 1

    def expand(
        self,
        dtstart: datetime,
        dtend: Optional[datetime],
        rule: Optional[RecurrenceRule],
    ) -> RecurrenceExpansion:
        """Expand an event into its occurrences, capped at ``max_occurrences``.

        Args:
            dtstart: Event start
            dtend: Event end, if any
            rule: Parsed RRULE, or None for a single occurrence

        Returns:
            Occurrences and whether the cap cut the sequence short
        """
        occurrences = list(
            islice(self.iter_occurrences(dtstart, dtend, rule), self.max_occurrences + 1)
        )
        truncated = len(occurrences) > self.max_occurrences
        if truncated:
            logger.warning(f"Limiting RRULE expansion to {self.max_occurrences} occurrences")
            occurrences = occurrences[: self.max_occurrences]

        if rule is not None:
            logger.verbose(  # type: ignore[attr-defined]
                "RRULE expansion result: freq=%s interval=%d occurrences=%d",
                rule.freq.value,
                rule.interval,
                len(occurrences),
            )
        return RecurrenceExpansion(occurrences=occurrences, truncated=truncated)

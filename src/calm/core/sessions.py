"""Focus session lengths: bounds, validation and parsing from free text."""

import re
from dataclasses import dataclass

from calm.errors import ValidationError

DEFAULT_SESSION_LENGTH_MINUTES = 25
DEFAULT_SESSION_EXTENSION_MINUTES = 15
MIN_SESSION_LENGTH_MINUTES = 1
MAX_SESSION_LENGTH_MINUTES = 480

DURATION_PATTERN = re.compile(
    r"\b(?:for\s+)?(\d+)\s*(hours?|hrs?|hr|h|minutes?|mins?|min|m)\b",
    re.IGNORECASE,
)


def _in_range(value: object) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_SESSION_LENGTH_MINUTES <= value <= MAX_SESSION_LENGTH_MINUTES
    )


def validate_session_length(value: object) -> int | None:
    """Strict check used by the task store: None passes, anything else must be in range."""
    if value is None:
        return None
    if not _in_range(value):
        raise ValidationError(
            f"Session length must be a whole number of minutes between "
            f"{MIN_SESSION_LENGTH_MINUTES} and {MAX_SESSION_LENGTH_MINUTES}."
        )
    return value


def resolve_session_length(value: object, default: int = DEFAULT_SESSION_LENGTH_MINUTES) -> int:
    """Lenient variant: out-of-range or non-integer input becomes ``default``."""
    if _in_range(value):
        return value
    return default


@dataclass
class SessionDurationMatch:
    value: str
    session_length_minutes: int
    start: int
    end: int


@dataclass
class ParsedSessionDuration:
    clean_title: str
    session_length_minutes: int | None


def _to_minutes(amount: int, unit: str) -> int:
    return amount * 60 if unit.lower().startswith("h") else amount


def _collapse_whitespace(value: str) -> str:
    return re.sub(r"\s{2,}", " ", value).strip()


def find_session_durations(text: str) -> list[SessionDurationMatch]:
    """All "25m" / "for 2 hours" style durations in ``text``, in order."""
    matches = []
    for match in DURATION_PATTERN.finditer(text):
        amount = int(match.group(1))
        if amount <= 0:
            continue
        matches.append(
            SessionDurationMatch(
                value=match.group(0),
                session_length_minutes=_to_minutes(amount, match.group(2)),
                start=match.start(),
                end=match.end(),
            )
        )
    return matches


def extract_session_duration(text: str) -> ParsedSessionDuration:
    """Split the first duration off a task title.

    >>> extract_session_duration("Write report for 45m")
    ParsedSessionDuration(clean_title='Write report', session_length_minutes=45)
    """
    trimmed = text.strip()
    if not trimmed:
        return ParsedSessionDuration(clean_title="", session_length_minutes=None)

    matches = find_session_durations(trimmed)
    if not matches:
        return ParsedSessionDuration(clean_title=trimmed, session_length_minutes=None)

    first = matches[0]
    clean = _collapse_whitespace(f"{trimmed[: first.start]} {trimmed[first.end :]}")
    return ParsedSessionDuration(clean_title=clean, session_length_minutes=first.session_length_minutes)

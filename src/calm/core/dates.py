"""Date key utilities - pure, no I/O.

A date key is a ``YYYY-MM-DD`` string naming a calendar day in the user's
local calendar. Arithmetic on keys goes through noon so that adding days never
lands on the wrong side of a daylight-saving shift.
"""

import re
from datetime import date, datetime, timedelta, timezone, tzinfo

from dateutil import parser as date_parser

from calm.errors import ValidationError

DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MS_PER_DAY = 24 * 60 * 60 * 1000


def to_date_key(value: date | datetime, tz: tzinfo | None = None) -> str:
    """Local calendar date of ``value`` as a date key.

    Aware datetimes are converted to ``tz`` first (system local zone when
    ``tz`` is None). Naive datetimes are taken as already local.
    """
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(tz)
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _at_noon(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value.replace(hour=12, minute=0, second=0, microsecond=0)
    return datetime(value.year, value.month, value.day, 12)


def add_days(value: date | datetime, days: int) -> datetime:
    """Noon of the day ``days`` after ``value``."""
    return _at_noon(value) + timedelta(days=days)


def parse_date_key(date_key: str) -> datetime:
    """Noon on the day named by ``date_key``."""
    if not isinstance(date_key, str) or not DATE_KEY_PATTERN.match(date_key):
        raise ValidationError("dateKey must be YYYY-MM-DD.")
    year, month, day = (int(part) for part in date_key.split("-"))
    try:
        return datetime(year, month, day, 12)
    except ValueError as e:
        raise ValidationError(f"dateKey is not a calendar day: {date_key}") from e


def shift_date_key(date_key: str, days: int) -> str:
    """Date key ``days`` after ``date_key`` (negative for earlier)."""
    return to_date_key(add_days(parse_date_key(date_key), days))


def day_difference(current: str, previous: str) -> int:
    """Whole days from ``previous`` to ``current``, never negative."""
    delta = parse_date_key(current) - parse_date_key(previous)
    delta_ms = delta.days * MS_PER_DAY + delta.seconds * 1000 + delta.microseconds // 1000
    return max(0, delta_ms // MS_PER_DAY)


def normalize_date_key(value: str) -> str:
    """Trim and validate a date key."""
    if not isinstance(value, str):
        raise ValidationError("dateKey must be YYYY-MM-DD.")
    trimmed = value.strip()
    parse_date_key(trimmed)
    return trimmed


def normalize_due_date(value: str | date | datetime | None, tz: tzinfo | None = None) -> str | None:
    """Canonical due date for storage.

    Accepts None, a blank string (both meaning unscheduled), a date key, a
    ``date``/``datetime``, or any free-form string dateutil can read.
    """
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return to_date_key(value, tz)
    if not isinstance(value, str):
        raise ValidationError(f"Unsupported due date: {value!r}")

    trimmed = value.strip()
    if not trimmed:
        return None
    if DATE_KEY_PATTERN.match(trimmed):
        return normalize_date_key(trimmed)

    try:
        parsed = date_parser.parse(trimmed)
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Could not parse due date: {trimmed}") from e
    return to_date_key(parsed, tz)


# ============== Timestamps ==============


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with fixed millisecond precision, so strings sort by time."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

"""Quick-add parsing: "Email Sam TM 30m" -> title, due date, session length.

Pure functions; "today" is always passed in.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta

from .dates import to_date_key
from .sessions import MAX_SESSION_LENGTH_MINUTES, extract_session_duration

logger = logging.getLogger(__name__)

ALIAS_PATTERN = re.compile(
    r"\b(TD|TM|TODAY|TOMORROW|MON|MONDAY|TUE|TUES|TUESDAY|WED|WEDNESDAY|THU|THUR|THURS|"
    r"THURSDAY|FRI|FRIDAY|SAT|SATURDAY|SUN|SUNDAY)\b",
    re.IGNORECASE,
)

# Python weekday numbering: Monday == 0
WEEKDAYS = {
    "MON": 0,
    "MONDAY": 0,
    "TUE": 1,
    "TUES": 1,
    "TUESDAY": 1,
    "WED": 2,
    "WEDNESDAY": 2,
    "THU": 3,
    "THUR": 3,
    "THURS": 3,
    "THURSDAY": 3,
    "FRI": 4,
    "FRIDAY": 4,
    "SAT": 5,
    "SATURDAY": 5,
    "SUN": 6,
    "SUNDAY": 6,
}


@dataclass
class DateAlias:
    alias: str
    date_key: str
    label: str
    start: int
    end: int


@dataclass
class QuickAddDraft:
    title: str
    due_date: str | None
    session_length_minutes: int | None


def resolve_alias(alias: str, today: date) -> tuple[str, str]:
    """(date_key, label) for an alias. Weekday names always mean the next one."""
    upper = alias.upper()
    if upper in ("TD", "TODAY"):
        return to_date_key(today), "Today"
    if upper in ("TM", "TOMORROW"):
        return to_date_key(today + timedelta(days=1)), "Tomorrow"

    days_ahead = WEEKDAYS[upper] - today.weekday()
    if days_ahead <= 0:
        days_ahead += 7
    target = today + timedelta(days=days_ahead)
    return to_date_key(target), f"{target:%a} {target:%b} {target.day}"


def parse_date_alias(text: str, today: date) -> DateAlias | None:
    """The last date alias in ``text``, if any."""
    last = None
    for match in ALIAS_PATTERN.finditer(text):
        date_key, label = resolve_alias(match.group(1), today)
        last = DateAlias(
            alias=match.group(1),
            date_key=date_key,
            label=label,
            start=match.start(1),
            end=match.end(1),
        )
    return last


def strip_alias(text: str, alias: DateAlias) -> str:
    return re.sub(r"\s{2,}", " ", text[: alias.start] + text[alias.end :]).strip()


def parse_quick_add(text: str, today: date) -> QuickAddDraft:
    """Pull a due-date alias and a session length out of a quick-add line.

    A parsed length outside the allowed range is dropped rather than
    rejected; the task then starts sessions with the default length.
    """
    alias = parse_date_alias(text, today)
    remainder = strip_alias(text, alias) if alias else text.strip()

    parsed = extract_session_duration(remainder)
    minutes = parsed.session_length_minutes
    if minutes is not None and minutes > MAX_SESSION_LENGTH_MINUTES:
        logger.debug(f"Dropping out-of-range quick-add duration: {minutes}m")
        minutes = None

    return QuickAddDraft(
        title=parsed.clean_title,
        due_date=alias.date_key if alias else None,
        session_length_minutes=minutes,
    )

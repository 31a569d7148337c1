"""Focus session value and the arithmetic observers do between pushes."""

import math
from dataclasses import asdict, dataclass, replace
from enum import Enum

MS_PER_MINUTE = 60 * 1000


class FocusStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass(frozen=True)
class FocusSession:
    """Snapshot of the focus timer. Times are epoch milliseconds."""

    status: FocusStatus = FocusStatus.IDLE
    commitment_id: str | None = None
    commitment_title: str | None = None
    session_length_minutes: int | None = None
    started_at: int | None = None
    ends_at: int | None = None

    @property
    def has_commitment(self) -> bool:
        return bool(self.commitment_id) and bool(self.commitment_title)

    def with_changes(self, **changes) -> "FocusSession":
        return replace(self, **changes)

    def to_payload(self) -> dict:
        """Wire form pushed on the ``focus:state`` channel."""
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload


IDLE_SESSION = FocusSession()


def normalize_session(payload: object) -> FocusSession:
    """Rebuild a session from an untrusted payload; anything odd reads as idle/None."""
    if not isinstance(payload, dict):
        return IDLE_SESSION

    status = payload.get("status")
    try:
        status = FocusStatus(status)
    except ValueError:
        status = FocusStatus.IDLE

    def text(key: str) -> str | None:
        value = payload.get(key)
        return value if isinstance(value, str) else None

    def number(key: str) -> int | None:
        value = payload.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return int(value)

    return FocusSession(
        status=status,
        commitment_id=text("commitment_id"),
        commitment_title=text("commitment_title"),
        session_length_minutes=number("session_length_minutes"),
        started_at=number("started_at"),
        ends_at=number("ends_at"),
    )


def remaining_ms(session: FocusSession, now: int) -> int:
    if session.status is not FocusStatus.RUNNING or session.ends_at is None:
        return 0
    return max(0, session.ends_at - now)


def remaining_whole_minutes(session: FocusSession, now: int) -> int:
    return max(0, math.ceil(remaining_ms(session, now) / MS_PER_MINUTE))


def progress_ratio(session: FocusSession, now: int) -> float:
    """Fraction of the session elapsed, 0..1. Complete sessions read as 1."""
    if session.status is FocusStatus.COMPLETE:
        return 1.0
    if (
        session.status is not FocusStatus.RUNNING
        or session.started_at is None
        or session.ends_at is None
    ):
        return 0.0

    total = session.ends_at - session.started_at
    if total <= 0:
        return 0.0
    return max(0.0, min(1.0, (now - session.started_at) / total))

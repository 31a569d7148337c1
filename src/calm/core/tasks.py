"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from calm.errors import ValidationError

from .dates import format_timestamp, parse_timestamp


class TaskStatus(Enum):
    ACTIVE = "active"
    DONE = "done"
    DROPPED = "dropped"


@dataclass
class Task:
    """A task that may be scheduled for a day and committed to."""

    id: str
    title: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime
    due_date: str | None = None
    session_length_minutes: int | None = None
    completed_at: datetime | None = None
    dropped_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status is TaskStatus.ACTIVE

    @property
    def is_scheduled(self) -> bool:
        return self.due_date is not None

    @classmethod
    def from_doc(cls, doc: dict) -> "Task":
        """Create Task from a stored document."""
        return cls(
            id=doc["_id"],
            title=doc["title"],
            status=TaskStatus(doc["status"]),
            created_at=parse_timestamp(doc["createdAt"]),
            updated_at=parse_timestamp(doc["updatedAt"]),
            due_date=doc.get("dueDate"),
            session_length_minutes=doc.get("sessionLengthMinutes"),
            completed_at=parse_timestamp(doc.get("completedAt")),
            dropped_at=parse_timestamp(doc.get("droppedAt")),
        )

    def to_doc(self) -> dict:
        """Serialize to a storage document (without ``_id``)."""
        doc = {
            "title": self.title,
            "status": self.status.value,
            "dueDate": self.due_date,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.session_length_minutes is not None:
            doc["sessionLengthMinutes"] = self.session_length_minutes
        if self.completed_at is not None:
            doc["completedAt"] = format_timestamp(self.completed_at)
        if self.dropped_at is not None:
            doc["droppedAt"] = format_timestamp(self.dropped_at)
        return doc

    def to_dict(self) -> dict:
        """JSON-friendly view for CLI and chat output."""
        return {"id": self.id, **self.to_doc()}


def normalize_title(value: str, kind: str = "Task") -> str:
    title = value.strip() if isinstance(value, str) else ""
    if not title:
        raise ValidationError(f"{kind} title is required.")
    return title


def sort_newest_first(tasks: list[Task]) -> list[Task]:
    """Most recently created first. Pure function - no I/O."""
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)

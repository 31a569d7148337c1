"""Task store - CRUD and status transitions over a document store."""

import logging
from datetime import date, datetime, tzinfo
from typing import Callable

from .core.dates import format_timestamp, normalize_due_date, now_utc
from .core.outcome import Outcome
from .core.sessions import validate_session_length
from .core.tasks import Task, TaskStatus, normalize_title
from .errors import NotFound, ValidationError
from .ports.document_store import DocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "tasks"
ORDER_INDEXES = {
    "createdAt": "by_status_createdAt",
    "dueDate": "by_status_dueDate",
    "updatedAt": "by_status_updatedAt",
}

UNSET = object()
DueDateInput = str | date | datetime | None


class TaskStore:
    """
    Tasks keyed by id, listed through (status, field) indexes.

    Session lengths are validated strictly here: callers that want a value
    defaulted rather than rejected resolve it before calling.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = now_utc,
        tz: tzinfo | None = None,
    ):
        self.store = store
        self.clock = clock
        self.tz = tz

    def find(self, task_id: str) -> Task | None:
        doc = self.store.get(COLLECTION, task_id)
        return Task.from_doc(doc) if doc else None

    def get(self, task_id: str) -> Task:
        task = self.find(task_id)
        if task is None:
            raise NotFound("Task", task_id)
        return task

    def create(
        self,
        title: str,
        due_date: DueDateInput = None,
        session_length_minutes: int | None = None,
    ) -> Task:
        title = normalize_title(title)
        due = normalize_due_date(due_date, self.tz)
        minutes = validate_session_length(session_length_minutes)

        now = self.clock()
        task = Task(
            id="",
            title=title,
            status=TaskStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            due_date=due,
            session_length_minutes=minutes,
        )
        task.id = self.store.insert(COLLECTION, task.to_doc())
        logger.debug(f"Created task {task.id}: {title!r} due {due}")
        return task

    def update(
        self,
        task_id: str,
        *,
        title: str = UNSET,
        due_date: DueDateInput = UNSET,
        session_length_minutes: int | None = UNSET,
    ) -> Task:
        """Edit an active task. Only the keyword arguments passed are changed."""
        task = self._require_active(task_id)

        fields = {}
        if title is not UNSET:
            fields["title"] = normalize_title(title)
        if due_date is not UNSET:
            fields["dueDate"] = normalize_due_date(due_date, self.tz)
        if session_length_minutes is not UNSET:
            fields["sessionLengthMinutes"] = validate_session_length(session_length_minutes)

        if not fields:
            return task
        fields["updatedAt"] = format_timestamp(self.clock())
        self.store.patch(COLLECTION, task_id, fields)
        return self.get(task_id)

    def set_due_date(self, task_id: str, due_date: DueDateInput) -> Task:
        """Reschedule without touching commitments; see ``workflows.reschedule_task``."""
        return self.update(task_id, due_date=due_date)

    def mark_done(self, task_id: str) -> Outcome:
        return self._finish(task_id, TaskStatus.DONE, "completedAt")

    def drop(self, task_id: str) -> Outcome:
        return self._finish(task_id, TaskStatus.DROPPED, "droppedAt")

    def _finish(self, task_id: str, target: TaskStatus, stamp_field: str) -> Outcome:
        task = self.get(task_id)
        if task.status is target:
            return Outcome.IGNORED
        if not task.is_active:
            raise ValidationError(f"Task is already {task.status.value}.")

        now = format_timestamp(self.clock())
        self.store.patch(
            COLLECTION,
            task_id,
            {"status": target.value, stamp_field: now, "updatedAt": now},
        )
        logger.debug(f"Task {task_id} -> {target.value}")
        return Outcome.APPLIED

    def list(
        self,
        status: TaskStatus = TaskStatus.ACTIVE,
        order_by: str = "createdAt",
        descending: bool = True,
    ) -> list[Task]:
        index = ORDER_INDEXES.get(order_by)
        if index is None:
            raise ValidationError(f"Cannot order tasks by {order_by!r}")
        docs = self.store.query(
            COLLECTION,
            index,
            eq={"status": status.value},
            order="desc" if descending else "asc",
        )
        return [Task.from_doc(doc) for doc in docs]

    def _require_active(self, task_id: str) -> Task:
        task = self.get(task_id)
        if not task.is_active:
            raise ValidationError(f"Task is {task.status.value}; only active tasks can be edited.")
        return task

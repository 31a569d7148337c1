"""Shared workflow layer between the CLI and Telegram.

These are the reads and writes display surfaces call. Every date key is
supplied by the caller; nothing here decides what "today" is.
"""

import logging
from dataclasses import dataclass
from datetime import tzinfo

from .adapters.json_store import JsonDocumentStore
from .config import Config
from .core.daily import DailyLedger, DailyModel, RitualKind
from .core.dates import normalize_date_key, parse_date_key
from .core.ideas import Direction, Idea
from .core.outcome import Outcome
from .core.planner import HorizonTasks, PlannerSnapshot, build_snapshot
from .core.planner import list_horizon_tasks as split_horizon
from .core.quick_add import parse_quick_add
from .core.reentry import ReentryStatus
from .core.reentry import get_reentry_status as detect_reentry
from .core.tasks import Task, TaskStatus
from .daily_store import DailyLedgerStore
from .errors import NotFound, ValidationError
from .idea_store import IdeaStore
from .ports.document_store import DocumentStore
from .task_store import UNSET, DueDateInput, TaskStore

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """The three stores over one document store."""

    tasks: TaskStore
    ideas: IdeaStore
    daily: DailyLedgerStore
    tz: tzinfo | None = None


def build_workspace(store: DocumentStore, tz: tzinfo | None = None, clock=None) -> Workspace:
    clock_kwargs = {"clock": clock} if clock else {}
    tasks = TaskStore(store, tz=tz, **clock_kwargs)
    return Workspace(
        tasks=tasks,
        ideas=IdeaStore(store, **clock_kwargs),
        daily=DailyLedgerStore(store, tasks, **clock_kwargs),
        tz=tz,
    )


def open_workspace(config: Config) -> Workspace:
    """Workspace over the JSON data file named in config."""
    return build_workspace(JsonDocumentStore(config.data_path), tz=config.tzinfo)


# ============== Reads ==============


def _active_tasks(ws: Workspace) -> list[Task]:
    return ws.tasks.list(TaskStatus.ACTIVE, order_by="createdAt", descending=True)


def get_planner_snapshot(ws: Workspace, today_key: str) -> PlannerSnapshot:
    today_key = normalize_date_key(today_key)
    done = ws.tasks.list(TaskStatus.DONE, order_by="updatedAt", descending=True)
    return build_snapshot(_active_tasks(ws), done, today_key, ws.tz)


def list_horizon_tasks(ws: Workspace, today_key: str) -> HorizonTasks:
    today_key = normalize_date_key(today_key)
    active = ws.tasks.list(TaskStatus.ACTIVE, order_by="dueDate", descending=False)
    return split_horizon(active, today_key)


def list_reset_decision_tasks(ws: Workspace, today_key: str) -> list[Task]:
    """Overdue tasks the reset ritual asks the user to reschedule, finish or drop."""
    return get_planner_snapshot(ws, today_key).prior_tasks


def get_today_daily_model(ws: Workspace, today_key: str) -> DailyModel:
    """Today's ledger with committed tasks resolved; ids of missing tasks are skipped."""
    today_key = normalize_date_key(today_key)
    daily = ws.daily.get(today_key)
    commitment_tasks = []
    if daily is not None:
        for task_id in daily.commitment_task_ids:
            task = ws.tasks.find(task_id)
            if task is not None:
                commitment_tasks.append(task)
    return DailyModel(today_key=today_key, daily=daily, commitment_tasks=commitment_tasks)


def get_reentry_status(ws: Workspace, today_key: str) -> ReentryStatus:
    today_key = normalize_date_key(today_key)
    return detect_reentry(ws.daily.list_descending(), today_key)


def list_active_ideas(ws: Workspace) -> list[Idea]:
    return ws.ideas.list_active()


# ============== Task writes ==============


def create_task(
    ws: Workspace,
    title: str,
    due_date: DueDateInput = None,
    session_length_minutes: int | None = None,
) -> Task:
    return ws.tasks.create(title, due_date, session_length_minutes)


def quick_add_task(ws: Workspace, text: str, today_key: str) -> Task:
    """Create a task from a line like "Call the bank TM 15m"."""
    today = parse_date_key(normalize_date_key(today_key)).date()
    draft = parse_quick_add(text, today)
    return ws.tasks.create(draft.title, draft.due_date, draft.session_length_minutes)


def decommit_if_rescheduled(ws: Workspace, task: Task, today_key: str) -> Outcome:
    """
    Keep today's commitments consistent with due dates.

    A commitment only means something for the day the task is due, so a task
    whose due date is no longer ``today_key`` leaves today's ledger. No
    ledger is created just to remove something from it.
    """
    if task.due_date == today_key:
        return Outcome.IGNORED
    ledger = ws.daily.get(today_key)
    if ledger is None or not ledger.is_committed(task.id):
        return Outcome.IGNORED

    logger.info(f"Task {task.id} moved to {task.due_date}; removing it from {today_key}")
    return ws.daily.remove_commitment(today_key, task.id)


def reschedule_task(ws: Workspace, task_id: str, due_date: DueDateInput, today_key: str) -> Task:
    today_key = normalize_date_key(today_key)
    task = ws.tasks.set_due_date(task_id, due_date)
    decommit_if_rescheduled(ws, task, today_key)
    return task


def set_task_due_date(ws: Workspace, task_id: str, due_date: DueDateInput, today_key: str) -> Task:
    return reschedule_task(ws, task_id, due_date, today_key)


def update_task(
    ws: Workspace,
    task_id: str,
    today_key: str,
    *,
    title: str = UNSET,
    due_date: DueDateInput = UNSET,
    session_length_minutes: int | None = UNSET,
) -> Task:
    today_key = normalize_date_key(today_key)
    task = ws.tasks.update(
        task_id,
        title=title,
        due_date=due_date,
        session_length_minutes=session_length_minutes,
    )
    if due_date is not UNSET:
        decommit_if_rescheduled(ws, task, today_key)
    return task


def mark_task_done(ws: Workspace, task_id: str) -> Outcome:
    return ws.tasks.mark_done(task_id)


def drop_task(ws: Workspace, task_id: str) -> Outcome:
    return ws.tasks.drop(task_id)


# ============== Idea writes ==============


def create_idea(ws: Workspace, title: str, reference_url: str | None = None) -> Idea:
    return ws.ideas.create(title, reference_url)


def update_idea(ws: Workspace, idea_id: str, **fields) -> Idea:
    return ws.ideas.update(idea_id, **fields)


def move_idea(ws: Workspace, idea_id: str, direction: Direction | str) -> Outcome:
    return ws.ideas.move_adjacent(idea_id, direction)


def reorder_idea(ws: Workspace, idea_id: str, target_index: int) -> Outcome:
    return ws.ideas.reorder_to_index(idea_id, target_index)


def archive_idea(ws: Workspace, idea_id: str) -> Outcome:
    return ws.ideas.archive(idea_id)


# ============== Daily writes ==============


def set_commitments_for_date(ws: Workspace, date_key: str, task_ids: list[str]) -> DailyLedger:
    return ws.daily.set_commitments(date_key, task_ids)


def add_commitment_for_date(ws: Workspace, date_key: str, task_id: str) -> Outcome:
    return ws.daily.add_commitment(date_key, task_id)


def remove_commitment_for_date(ws: Workspace, date_key: str, task_id: str) -> Outcome:
    return ws.daily.remove_commitment(date_key, task_id)


def mark_ritual_completed(ws: Workspace, date_key: str, ritual: RitualKind | str) -> DailyLedger:
    return ws.daily.mark_ritual_completed(date_key, ritual)


# ============== Lookup ==============


def _match_prefix(items: list, ref: str, kind: str):
    matches = [item for item in items if item.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFound(kind, ref)
    raise ValidationError(f"{kind} id prefix {ref!r} matches {len(matches)} items")


def find_task(ws: Workspace, ref: str) -> Task:
    """Task by full id, or by a unique id prefix among active tasks."""
    ref = ref.strip()
    if not ref:
        raise ValidationError("Task id is required.")
    task = ws.tasks.find(ref)
    if task is not None:
        return task
    return _match_prefix(_active_tasks(ws), ref, "Task")


def find_idea(ws: Workspace, ref: str) -> Idea:
    """Active idea by full id or unique id prefix."""
    ref = ref.strip()
    if not ref:
        raise ValidationError("Idea id is required.")
    return _match_prefix(ws.ideas.list_active(), ref, "Idea")

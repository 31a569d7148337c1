"""Functional core - pure business logic with no I/O."""

from .daily import DailyLedger, DailyModel, RitualKind
from .dates import normalize_date_key, normalize_due_date, shift_date_key, to_date_key
from .focus import FocusSession, FocusStatus
from .ideas import Direction, Idea, IdeaStatus
from .outcome import Outcome
from .planner import HorizonTasks, PlannerSnapshot, build_snapshot, list_horizon_tasks
from .reentry import ReentryStatus, get_reentry_status
from .tasks import Task, TaskStatus

__all__ = [
    # Dates
    "normalize_date_key",
    "normalize_due_date",
    "shift_date_key",
    "to_date_key",
    # Tasks
    "Task",
    "TaskStatus",
    # Ideas
    "Idea",
    "IdeaStatus",
    "Direction",
    # Daily
    "DailyLedger",
    "DailyModel",
    "RitualKind",
    # Planner
    "PlannerSnapshot",
    "HorizonTasks",
    "build_snapshot",
    "list_horizon_tasks",
    # Re-entry
    "ReentryStatus",
    "get_reentry_status",
    # Focus
    "FocusSession",
    "FocusStatus",
    # Results
    "Outcome",
]

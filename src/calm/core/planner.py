"""Planner snapshot - date-relative buckets over the task list.

Pure functions: ``today_key`` is always supplied by the caller, no clock reads.
"""

from dataclasses import dataclass, field
from datetime import tzinfo

from .dates import shift_date_key, to_date_key
from .tasks import Task, sort_newest_first


@dataclass
class HorizonTasks:
    """Active tasks due in the next three days."""

    today_key: str
    tomorrow_key: str
    day_after_key: str
    today_tasks: list[Task] = field(default_factory=list)
    tomorrow_tasks: list[Task] = field(default_factory=list)
    day_after_tasks: list[Task] = field(default_factory=list)


@dataclass
class PlannerSnapshot:
    """Every active task placed in exactly one bucket, plus review counts."""

    today_key: str
    tomorrow_key: str
    day_after_key: str
    yesterday_key: str
    today_tasks: list[Task] = field(default_factory=list)
    tomorrow_tasks: list[Task] = field(default_factory=list)
    day_after_tasks: list[Task] = field(default_factory=list)
    unscheduled_tasks: list[Task] = field(default_factory=list)
    later_tasks: list[Task] = field(default_factory=list)
    prior_tasks: list[Task] = field(default_factory=list)
    active_tasks: list[Task] = field(default_factory=list)
    yesterday_completed_count: int = 0

    def buckets(self) -> dict[str, list[Task]]:
        """The six disjoint buckets by name."""
        return {
            "today": self.today_tasks,
            "tomorrow": self.tomorrow_tasks,
            "day_after": self.day_after_tasks,
            "unscheduled": self.unscheduled_tasks,
            "prior": self.prior_tasks,
            "later": self.later_tasks,
        }


def _bucket_for(task: Task, today_key: str, tomorrow_key: str, day_after_key: str) -> str:
    due = task.due_date
    if due is None:
        return "unscheduled"
    if due == today_key:
        return "today"
    if due == tomorrow_key:
        return "tomorrow"
    if due == day_after_key:
        return "day_after"
    # Date keys compare chronologically as strings
    if due < today_key:
        return "prior"
    return "later"


def build_snapshot(
    active_tasks: list[Task],
    done_tasks: list[Task],
    today_key: str,
    tz: tzinfo | None = None,
) -> PlannerSnapshot:
    """
    Bucket active tasks relative to ``today_key``.

    Horizon buckets keep the input order; unscheduled, prior and later are
    sorted newest first. ``tz`` is the zone used to read ``completed_at`` as
    a local day (system zone when None).
    """
    snapshot = PlannerSnapshot(
        today_key=today_key,
        tomorrow_key=shift_date_key(today_key, 1),
        day_after_key=shift_date_key(today_key, 2),
        yesterday_key=shift_date_key(today_key, -1),
        active_tasks=list(active_tasks),
    )
    buckets = snapshot.buckets()

    for task in active_tasks:
        name = _bucket_for(task, snapshot.today_key, snapshot.tomorrow_key, snapshot.day_after_key)
        buckets[name].append(task)

    snapshot.unscheduled_tasks = sort_newest_first(snapshot.unscheduled_tasks)
    snapshot.prior_tasks = sort_newest_first(snapshot.prior_tasks)
    snapshot.later_tasks = sort_newest_first(snapshot.later_tasks)

    snapshot.yesterday_completed_count = sum(
        1
        for task in done_tasks
        if task.completed_at is not None
        and to_date_key(task.completed_at, tz) == snapshot.yesterday_key
    )
    return snapshot


def list_horizon_tasks(active_tasks: list[Task], today_key: str) -> HorizonTasks:
    """Lighter split for call sites that only need the next three days."""
    horizon = HorizonTasks(
        today_key=today_key,
        tomorrow_key=shift_date_key(today_key, 1),
        day_after_key=shift_date_key(today_key, 2),
    )
    for task in active_tasks:
        if task.due_date == horizon.today_key:
            horizon.today_tasks.append(task)
        elif task.due_date == horizon.tomorrow_key:
            horizon.tomorrow_tasks.append(task)
        elif task.due_date == horizon.day_after_key:
            horizon.day_after_tasks.append(task)
    return horizon

"""Pure text rendering of planner state - no I/O dependencies.

Output is plain markdown so the CLI can print it and the chat bot can send it.
"""

from datetime import tzinfo

from .daily import DailyModel, RitualKind
from .dates import day_difference
from .focus import FocusSession, FocusStatus, remaining_ms
from .ideas import Idea
from .planner import PlannerSnapshot
from .reentry import ReentryStatus
from .tasks import Task

ID_WIDTH = 8

SECTIONS = [
    ("Today", "today_tasks"),
    ("Tomorrow", "tomorrow_tasks"),
    ("Day after", "day_after_tasks"),
    ("Unscheduled", "unscheduled_tasks"),
    ("Later", "later_tasks"),
]


def short_id(item_id: str) -> str:
    return item_id[:ID_WIDTH]


def format_task_line(task: Task, today_key: str | None = None) -> str:
    """
    One task as a list item: short id, title, lateness, session length.

    Pure function - no I/O.
    """
    parts = [f"- `{short_id(task.id)}` {task.title}"]
    if task.due_date and today_key and task.due_date < today_key:
        days = day_difference(today_key, task.due_date)
        parts.append(f"(overdue {days}d)")
    elif task.due_date and task.due_date != today_key:
        parts.append(f"(due {task.due_date})")
    if task.session_length_minutes:
        parts.append(f"[{task.session_length_minutes}m]")
    return " ".join(parts)


def format_snapshot(snapshot: PlannerSnapshot) -> str:
    lines = [f"## Planner for {snapshot.today_key}"]
    for title, attr in SECTIONS:
        tasks = getattr(snapshot, attr)
        if not tasks:
            continue
        lines.append("")
        lines.append(f"### {title}")
        lines.extend(format_task_line(t, snapshot.today_key) for t in tasks)

    if snapshot.prior_tasks:
        count = len(snapshot.prior_tasks)
        lines.append("")
        lines.append(f"### Earlier ({count} waiting for a decision)")
        lines.extend(format_task_line(t, snapshot.today_key) for t in snapshot.prior_tasks)

    if not snapshot.active_tasks:
        lines.append("")
        lines.append("Nothing planned.")

    lines.append("")
    lines.append(f"Completed yesterday: {snapshot.yesterday_completed_count}")
    return "\n".join(lines)


def format_daily(
    model: DailyModel,
    reentry: ReentryStatus | None = None,
    tz: tzinfo | None = None,
) -> str:
    lines = [f"## {model.today_key}"]

    if reentry and reentry.should_show_reset_banner:
        lines.append("")
        lines.append(
            f"It has been {reentry.days_since_last_evening} days since your last evening "
            "review. Run the reset ritual to get back on track."
        )

    lines.append("")
    lines.append("### Commitments")
    if model.commitment_tasks:
        lines.extend(format_task_line(t, model.today_key) for t in model.commitment_tasks)
    else:
        lines.append("No commitments yet.")

    lines.append("")
    lines.append("### Rituals")
    for ritual in RitualKind:
        stamp = model.daily.completed_at(ritual) if model.daily else None
        status = f"done at {stamp.astimezone(tz):%H:%M}" if stamp else "pending"
        lines.append(f"- {ritual.value}: {status}")
    return "\n".join(lines)


def format_ideas(ideas: list[Idea]) -> str:
    if not ideas:
        return "No ideas yet."
    lines = []
    for position, idea in enumerate(ideas, start=1):
        link = f" <{idea.reference_url}>" if idea.reference_url else ""
        lines.append(f"{position}. `{short_id(idea.id)}` {idea.title}{link}")
    return "\n".join(lines)


def format_countdown(ms: int) -> str:
    total_seconds = max(0, ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_focus(session: FocusSession, now: int) -> str:
    match session.status:
        case FocusStatus.RUNNING:
            left = format_countdown(remaining_ms(session, now))
            return f"Focusing on {session.commitment_title}: {left} left"
        case FocusStatus.COMPLETE:
            return f"Focus block complete: {session.commitment_title}"
        case _:
            return "No focus session running."

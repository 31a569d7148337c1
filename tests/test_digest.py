"""Tests for plain-text rendering."""

from datetime import datetime, timezone

from calm.core.daily import DailyLedger, DailyModel
from calm.core.digest import (
    format_countdown,
    format_daily,
    format_focus,
    format_ideas,
    format_snapshot,
    format_task_line,
)
from calm.core.focus import IDLE_SESSION, FocusSession, FocusStatus
from calm.core.ideas import Idea, IdeaStatus
from calm.core.planner import build_snapshot
from calm.core.reentry import ReentryStatus
from calm.core.tasks import Task, TaskStatus

STAMP = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


def make_task(task_id="abcdef1234", title="Write report", due=None, minutes=None):
    return Task(
        id=task_id,
        title=title,
        status=TaskStatus.ACTIVE,
        created_at=STAMP,
        updated_at=STAMP,
        due_date=due,
        session_length_minutes=minutes,
    )


class TestFormatTaskLine:
    def test_plain(self):
        assert format_task_line(make_task()) == "- `abcdef12` Write report"

    def test_overdue(self):
        line = format_task_line(make_task(due="2024-03-07", minutes=30), "2024-03-10")
        assert line == "- `abcdef12` Write report (overdue 3d) [30m]"

    def test_due_later(self):
        assert format_task_line(make_task(due="2024-03-12"), "2024-03-10").endswith("(due 2024-03-12)")

    def test_due_today_has_no_suffix(self):
        assert format_task_line(make_task(due="2024-03-10"), "2024-03-10") == "- `abcdef12` Write report"


class TestFormatSnapshot:
    def test_sections(self):
        snapshot = build_snapshot(
            [make_task("t1", "Today thing", "2024-03-10"), make_task("t2", "Old thing", "2024-03-01")],
            [],
            "2024-03-10",
        )
        text = format_snapshot(snapshot)
        assert "### Today" in text
        assert "Today thing" in text
        assert "### Earlier (1 waiting for a decision)" in text
        assert "### Tomorrow" not in text
        assert text.endswith("Completed yesterday: 0")

    def test_empty(self):
        assert "Nothing planned." in format_snapshot(build_snapshot([], [], "2024-03-10"))


class TestFormatDaily:
    def test_banner_and_rituals(self):
        ledger = DailyLedger(id="d1", date_key="2024-03-10", updated_at=STAMP, morning_completed_at=STAMP)
        model = DailyModel(today_key="2024-03-10", daily=ledger, commitment_tasks=[make_task()])
        reentry = ReentryStatus("2024-03-10", 3, True)

        text = format_daily(model, reentry, timezone.utc)
        assert "It has been 3 days" in text
        assert "Write report" in text
        assert "- morning: done at 09:00" in text
        assert "- evening: pending" in text

    def test_without_ledger(self):
        text = format_daily(DailyModel(today_key="2024-03-10", daily=None))
        assert "No commitments yet." in text
        assert "It has been" not in text


class TestFormatIdeas:
    def test_numbered_with_links(self):
        idea = Idea(
            id="1234567890",
            title="Read paper",
            rank=1,
            status=IdeaStatus.ACTIVE,
            created_at=STAMP,
            updated_at=STAMP,
            reference_url="https://example.com",
        )
        assert format_ideas([idea]) == "1. `12345678` Read paper <https://example.com>"

    def test_empty(self):
        assert format_ideas([]) == "No ideas yet."


class TestFormatFocus:
    def test_countdown(self):
        assert format_countdown(90_500) == "01:30"
        assert format_countdown(-5) == "00:00"

    def test_states(self):
        running = FocusSession(
            status=FocusStatus.RUNNING,
            commitment_id="t1",
            commitment_title="Write report",
            session_length_minutes=25,
            started_at=0,
            ends_at=25 * 60_000,
        )
        assert format_focus(running, 0) == "Focusing on Write report: 25:00 left"
        complete = running.with_changes(status=FocusStatus.COMPLETE)
        assert format_focus(complete, 0) == "Focus block complete: Write report"
        assert format_focus(IDLE_SESSION, 0) == "No focus session running."

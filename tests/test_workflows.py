"""Tests for the shared workflow layer."""

from pathlib import Path
from unittest.mock import patch

import pytest

from calm import workflows as wf
from calm.config import Config, DATA_DIR
from calm.core.daily import RitualKind
from calm.core.outcome import Outcome
from calm.core.tasks import TaskStatus
from calm.errors import NotFound, ValidationError

TODAY = "2024-03-10"
TOMORROW = "2024-03-11"


class TestPlanningDay:
    def test_commit_finish_and_review(self, ws, clock):
        task = wf.create_task(ws, "Write report", TODAY)

        snapshot = wf.get_planner_snapshot(ws, TODAY)
        assert [t.id for t in snapshot.today_tasks] == [task.id]

        assert wf.add_commitment_for_date(ws, TODAY, task.id) is Outcome.APPLIED
        model = wf.get_today_daily_model(ws, TODAY)
        assert [t.title for t in model.commitment_tasks] == ["Write report"]

        clock.advance(hours=6)
        assert wf.mark_task_done(ws, task.id) is Outcome.APPLIED

        snapshot = wf.get_planner_snapshot(ws, TODAY)
        assert snapshot.active_tasks == []
        assert wf.get_planner_snapshot(ws, TOMORROW).yesterday_completed_count == 1

        model = wf.get_today_daily_model(ws, TODAY)
        assert model.commitment_tasks[0].status is TaskStatus.DONE

    def test_daily_model_without_ledger(self, ws):
        model = wf.get_today_daily_model(ws, TODAY)
        assert model.daily is None
        assert model.commitment_tasks == []

    def test_daily_model_skips_missing_tasks(self, ws, store):
        task = wf.create_task(ws, "Real")
        ledger = wf.set_commitments_for_date(ws, TODAY, [task.id])
        store.patch("daily", ledger.id, {"commitmentTaskIds": ["gone", task.id]})
        model = wf.get_today_daily_model(ws, TODAY)
        assert [t.id for t in model.commitment_tasks] == [task.id]

    def test_horizon_and_reset_decisions(self, ws):
        overdue = wf.create_task(ws, "Overdue", "2024-03-01")
        soon = wf.create_task(ws, "Soon", TOMORROW)
        wf.create_task(ws, "Someday")

        horizon = wf.list_horizon_tasks(ws, TODAY)
        assert [t.id for t in horizon.tomorrow_tasks] == [soon.id]
        assert [t.id for t in wf.list_reset_decision_tasks(ws, TODAY)] == [overdue.id]

    def test_invalid_today_key(self, ws):
        with pytest.raises(ValidationError):
            wf.get_planner_snapshot(ws, "today")


class TestDecommitOnReschedule:
    @pytest.fixture
    def committed(self, ws):
        task = wf.create_task(ws, "Write report", TODAY)
        wf.add_commitment_for_date(ws, TODAY, task.id)
        return task

    def test_moving_away_from_today_decommits(self, ws, committed):
        moved = wf.reschedule_task(ws, committed.id, TOMORROW, TODAY)
        assert moved.due_date == TOMORROW
        assert wf.get_today_daily_model(ws, TODAY).commitment_tasks == []

    def test_unscheduling_decommits(self, ws, committed):
        wf.set_task_due_date(ws, committed.id, None, TODAY)
        assert ws.daily.get(TODAY).commitment_task_ids == []

    def test_keeping_today_keeps_commitment(self, ws, committed):
        wf.reschedule_task(ws, committed.id, TODAY, TODAY)
        assert ws.daily.get(TODAY).commitment_task_ids == [committed.id]

    def test_other_days_are_untouched(self, ws, committed):
        wf.add_commitment_for_date(ws, TOMORROW, committed.id)
        wf.reschedule_task(ws, committed.id, "2024-03-15", TODAY)
        assert ws.daily.get(TOMORROW).commitment_task_ids == [committed.id]

    def test_update_with_due_date_decommits(self, ws, committed):
        wf.update_task(ws, committed.id, TODAY, due_date=TOMORROW)
        assert ws.daily.get(TODAY).commitment_task_ids == []

    def test_update_without_due_date_keeps_commitment(self, ws, committed):
        updated = wf.update_task(ws, committed.id, TODAY, title="Write the report")
        assert updated.title == "Write the report"
        assert ws.daily.get(TODAY).commitment_task_ids == [committed.id]

    def test_no_ledger_is_created(self, ws):
        task = wf.create_task(ws, "Loose", TODAY)
        wf.reschedule_task(ws, task.id, TOMORROW, TODAY)
        assert ws.daily.get(TODAY) is None


class TestQuickAdd:
    def test_creates_parsed_task(self, ws):
        task = wf.quick_add_task(ws, "Call bank TM 15m", TODAY)
        assert task.title == "Call bank"
        assert task.due_date == TOMORROW
        assert task.session_length_minutes == 15

    def test_session_length_policy(self, ws):
        # Explicit lengths are rejected; lengths parsed out of free text are dropped
        with pytest.raises(ValidationError):
            wf.create_task(ws, "Marathon prep", session_length_minutes=540)
        task = wf.quick_add_task(ws, "Marathon prep 9h", TODAY)
        assert task.title == "Marathon prep"
        assert task.session_length_minutes is None

    def test_needs_a_title(self, ws):
        with pytest.raises(ValidationError):
            wf.quick_add_task(ws, "TM 15m", TODAY)


class TestReentry:
    def test_gap_after_missed_evenings(self, ws):
        wf.mark_ritual_completed(ws, "2024-03-07", RitualKind.EVENING)
        status = wf.get_reentry_status(ws, TODAY)
        assert status.days_since_last_evening == 3
        assert status.should_show_reset_banner is True

        wf.mark_ritual_completed(ws, TODAY, RitualKind.EVENING)
        status = wf.get_reentry_status(ws, TODAY)
        assert status.days_since_last_evening == 0
        assert status.should_show_reset_banner is False


class TestIdeas:
    def test_idea_lifecycle(self, ws):
        a = wf.create_idea(ws, "A")
        b = wf.create_idea(ws, "B", "https://example.com")
        assert wf.move_idea(ws, b.id, "up") is Outcome.APPLIED
        assert [i.title for i in wf.list_active_ideas(ws)] == ["B", "A"]
        assert wf.reorder_idea(ws, b.id, 1) is Outcome.APPLIED
        assert wf.update_idea(ws, a.id, title="A2").title == "A2"
        assert wf.archive_idea(ws, a.id) is Outcome.APPLIED
        assert [i.title for i in wf.list_active_ideas(ws)] == ["B"]


class TestLookup:
    def test_find_task_by_full_id(self, ws):
        task = wf.create_task(ws, "Exact")
        wf.mark_task_done(ws, task.id)
        assert wf.find_task(ws, task.id).id == task.id

    def test_find_task_by_prefix(self, ws):
        task = wf.create_task(ws, "Prefix")
        assert wf.find_task(ws, f" {task.id[:6]} ").id == task.id

    def test_find_task_missing(self, ws):
        wf.create_task(ws, "Other")
        with pytest.raises(NotFound):
            wf.find_task(ws, "zzzz")

    def test_find_task_blank(self, ws):
        with pytest.raises(ValidationError):
            wf.find_task(ws, "  ")

    def test_find_idea_by_prefix(self, ws):
        idea = wf.create_idea(ws, "Idea")
        assert wf.find_idea(ws, idea.id[:4]).id == idea.id


class TestOpenWorkspace:
    def test_persists_between_instances(self, tmp_path):
        config = Config(data_file=str(tmp_path / "calm.json"))
        task = wf.create_task(wf.open_workspace(config), "Persisted")

        reopened = wf.open_workspace(config)
        assert reopened.tasks.get(task.id).title == "Persisted"

    def test_long_lived_workspace_sees_other_writers(self, tmp_path):
        config = Config(data_file=str(tmp_path / "calm.json"))
        bot = wf.open_workspace(config)
        cli = wf.open_workspace(config)

        from_cli = wf.create_task(cli, "Added from CLI", TODAY)
        wf.create_task(bot, "Added from chat", TODAY)

        assert bot.tasks.get(from_cli.id).title == "Added from CLI"
        snapshot = wf.get_planner_snapshot(wf.open_workspace(config), TODAY)
        assert sorted(t.title for t in snapshot.today_tasks) == ["Added from CLI", "Added from chat"]

    def test_failed_save_is_not_visible(self, tmp_path):
        ws = wf.open_workspace(Config(data_file=str(tmp_path / "calm.json")))
        with patch.object(Path, "write_text", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                wf.create_task(ws, "Never saved", TODAY)
        assert wf.get_planner_snapshot(ws, TODAY).today_tasks == []

    def test_default_data_path(self):
        assert Config().data_path == DATA_DIR / "calm.json"

    def test_uses_configured_timezone(self, tmp_path):
        config = Config(data_file=str(tmp_path / "calm.json"), timezone="UTC")
        ws = wf.open_workspace(config)
        assert ws.tz is not None
        assert str(ws.tz) == "UTC"

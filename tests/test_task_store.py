"""Tests for the task store."""

import pytest

from calm.core.outcome import Outcome
from calm.core.tasks import TaskStatus
from calm.errors import NotFound, ValidationError


@pytest.fixture
def tasks(ws):
    return ws.tasks


class TestCreate:
    def test_trims_and_stamps(self, tasks, clock):
        task = tasks.create("  Write report  ", "2024-03-10", 45)
        assert task.title == "Write report"
        assert task.status is TaskStatus.ACTIVE
        assert task.due_date == "2024-03-10"
        assert task.session_length_minutes == 45
        assert task.created_at == clock.now
        assert task.updated_at == clock.now
        assert task.completed_at is None
        assert task.dropped_at is None

    def test_round_trips_through_store(self, tasks):
        created = tasks.create("Call bank", "March 12, 2024")
        fetched = tasks.get(created.id)
        assert fetched == created
        assert fetched.due_date == "2024-03-12"

    def test_blank_title_inserts_nothing(self, tasks, store):
        with pytest.raises(ValidationError, match="title is required"):
            tasks.create("   ")
        assert store.dump()["tasks"] == {}

    @pytest.mark.parametrize("minutes", [0, 481, 2.5])
    def test_session_length_is_strict(self, tasks, store, minutes):
        with pytest.raises(ValidationError):
            tasks.create("Deep work", session_length_minutes=minutes)
        assert store.dump()["tasks"] == {}

    def test_bad_due_date(self, tasks):
        with pytest.raises(ValidationError):
            tasks.create("Deep work", "2024-02-30")

    def test_optional_fields_not_stored_when_unset(self, tasks, store):
        task = tasks.create("Plain")
        doc = store.dump()["tasks"][task.id]
        assert doc["dueDate"] is None
        assert "sessionLengthMinutes" not in doc
        assert "completedAt" not in doc


class TestUpdate:
    def test_changes_only_given_fields(self, tasks, clock):
        task = tasks.create("Draft", "2024-03-10", 30)
        clock.advance(minutes=5)
        updated = tasks.update(task.id, title="Final draft")
        assert updated.title == "Final draft"
        assert updated.due_date == "2024-03-10"
        assert updated.session_length_minutes == 30
        assert updated.updated_at == clock.now
        assert updated.created_at == task.created_at

    def test_clear_due_date_and_length(self, tasks):
        task = tasks.create("Draft", "2024-03-10", 30)
        updated = tasks.update(task.id, due_date=None, session_length_minutes=None)
        assert updated.due_date is None
        assert updated.session_length_minutes is None

    def test_no_fields_is_a_noop(self, tasks, clock):
        task = tasks.create("Draft")
        clock.advance(minutes=5)
        assert tasks.update(task.id) == task

    def test_unknown_task(self, tasks):
        with pytest.raises(NotFound):
            tasks.update("missing", title="x")

    def test_finished_task_cannot_be_edited(self, tasks):
        task = tasks.create("Draft")
        tasks.mark_done(task.id)
        with pytest.raises(ValidationError):
            tasks.set_due_date(task.id, "2024-03-11")


class TestStatusTransitions:
    def test_mark_done_is_idempotent(self, tasks, clock):
        task = tasks.create("Ship it")
        clock.advance(hours=1)
        assert tasks.mark_done(task.id) is Outcome.APPLIED
        first = tasks.get(task.id)
        assert first.status is TaskStatus.DONE
        assert first.completed_at == clock.now

        clock.advance(hours=1)
        assert tasks.mark_done(task.id) is Outcome.IGNORED
        assert tasks.get(task.id).completed_at == first.completed_at
        assert tasks.get(task.id).updated_at == first.updated_at

    def test_drop_is_idempotent(self, tasks, clock):
        task = tasks.create("Maybe")
        assert tasks.drop(task.id) is Outcome.APPLIED
        dropped_at = tasks.get(task.id).dropped_at
        clock.advance(minutes=1)
        assert tasks.drop(task.id) is Outcome.IGNORED
        assert tasks.get(task.id).dropped_at == dropped_at

    def test_done_and_dropped_are_exclusive(self, tasks):
        dropped = tasks.create("Dropped")
        tasks.drop(dropped.id)
        with pytest.raises(ValidationError, match="already dropped"):
            tasks.mark_done(dropped.id)

        done = tasks.create("Done")
        tasks.mark_done(done.id)
        with pytest.raises(ValidationError, match="already done"):
            tasks.drop(done.id)

    def test_unknown_task(self, tasks):
        with pytest.raises(NotFound):
            tasks.mark_done("missing")


class TestList:
    def test_newest_first_by_status(self, tasks, clock):
        first = tasks.create("First")
        clock.advance(minutes=1)
        second = tasks.create("Second")
        clock.advance(minutes=1)
        finished = tasks.create("Finished")
        tasks.mark_done(finished.id)

        assert [t.id for t in tasks.list()] == [second.id, first.id]
        assert [t.id for t in tasks.list(TaskStatus.DONE)] == [finished.id]
        assert tasks.list(TaskStatus.DROPPED) == []

    def test_by_due_date_unscheduled_first(self, tasks, clock):
        later = tasks.create("Later", "2024-03-20")
        clock.advance(minutes=1)
        unscheduled = tasks.create("Unscheduled")
        clock.advance(minutes=1)
        sooner = tasks.create("Sooner", "2024-03-11")

        ordered = tasks.list(order_by="dueDate", descending=False)
        assert [t.id for t in ordered] == [unscheduled.id, sooner.id, later.id]

    def test_unknown_order(self, tasks):
        with pytest.raises(ValidationError):
            tasks.list(order_by="title")

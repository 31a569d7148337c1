"""Tests for the click CLI."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from calm.cli import main
from calm.config import Config

DAY = "2024-03-10"


@pytest.fixture
def run(tmp_path):
    config = Config(data_file=str(tmp_path / "calm.json"), timezone="UTC")
    runner = CliRunner()

    def invoke(*args):
        with patch("calm.cli.load_config", return_value=config):
            return runner.invoke(main, list(args))

    return invoke


def planner_json(run, day=DAY):
    result = run("tasks", "--json", "--today", day)
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestTaskCommands:
    def test_add_and_list(self, run):
        result = run("add", "Write", "report", "--due", DAY, "-m", "45")
        assert result.exit_code == 0, result.output
        assert "Write report" in result.output

        data = planner_json(run)
        assert [t["title"] for t in data["buckets"]["today"]] == ["Write report"]
        assert data["buckets"]["today"][0]["sessionLengthMinutes"] == 45

    def test_invalid_input_exits_nonzero(self, run):
        result = run("add", "Deep", "work", "-m", "0")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_done_by_prefix(self, run):
        run("add", "Ship", "it", "--due", DAY)
        task_id = planner_json(run)["buckets"]["today"][0]["id"]

        result = run("done", task_id[:6])
        assert result.exit_code == 0, result.output
        assert "Done: Ship it" in result.output
        assert "Already done" in run("done", task_id).output
        assert planner_json(run)["buckets"]["today"] == []

    def test_due_reschedules(self, run):
        run("add", "Call", "bank", "--due", DAY)
        task_id = planner_json(run)["buckets"]["today"][0]["id"]
        result = run("due", task_id, "2024-03-11")
        assert "Call bank: 2024-03-11" in result.output
        assert len(planner_json(run)["buckets"]["tomorrow"]) == 1

    def test_unknown_task(self, run):
        result = run("done", "zzzz")
        assert result.exit_code == 1
        assert "Task not found" in result.output


class TestDailyCommands:
    def test_commit_and_today(self, run):
        run("add", "Write", "report", "--due", DAY)
        task_id = planner_json(run)["buckets"]["today"][0]["id"]

        assert "Committed" in run("commit", task_id, "--date", DAY).output
        assert "Already committed" in run("commit", task_id, "--date", DAY).output

        result = run("today", "--date", DAY)
        assert "Write report" in result.output
        assert "- morning: pending" in result.output

    def test_ritual(self, run):
        result = run("ritual", "evening", "--date", DAY)
        assert result.exit_code == 0, result.output
        assert f"Evening ritual recorded for {DAY}" in result.output
        assert "- evening: done at" in run("today", "--date", DAY).output

    def test_reset_lists_overdue_tasks(self, run):
        run("add", "Old", "thing", "--due", "2024-03-01")
        result = run("ritual", "reset", "--date", DAY)
        assert "Still waiting for a decision:" in result.output
        assert "Old thing (overdue 9d)" in result.output

    def test_reentry_json(self, run):
        data = json.loads(run("reentry", "--json").output)
        assert data["days_since_last_evening"] is None
        assert data["should_show_reset_banner"] is False


class TestIdeaCommands:
    def test_add_move_archive(self, run):
        run("ideas", "add", "First")
        run("ideas", "add", "Second", "--url", "https://example.com")
        ideas = json.loads(run("ideas", "list", "--json").output)
        assert [i["title"] for i in ideas] == ["First", "Second"]

        assert "Moved up: Second" in run("ideas", "move", ideas[1]["id"], "up").output
        assert "Already at the top." in run("ideas", "move", ideas[1]["id"], "up").output

        run("ideas", "archive", ideas[0]["id"])
        assert "First" not in run("ideas").output

    def test_bad_url(self, run):
        result = run("ideas", "add", "Link", "--url", "example.com")
        assert result.exit_code == 1

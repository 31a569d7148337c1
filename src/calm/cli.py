"""Calm CLI - planner, daily rituals and focus sessions."""

import json
import logging
import sys
import threading

import click
from apscheduler.schedulers.background import BackgroundScheduler

from . import __version__
from . import workflows as wf
from .adapters.scheduler_ticker import SchedulerTicker
from .config import load_config, today_key
from .core.daily import RitualKind
from .core.digest import format_daily, format_focus, format_ideas, format_snapshot, format_task_line
from .core.focus import FocusSession, FocusStatus
from .core.outcome import Outcome
from .errors import CalmError
from .focus import FocusSessionController


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _open():
    config = load_config()
    return config, wf.open_workspace(config)


def _report(outcome: Outcome, applied: str, ignored: str) -> None:
    click.echo(applied if outcome.changed else ignored)


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Calm - personal planner."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


# ============== Tasks ==============


@main.command()
@click.argument("title", nargs=-1, required=True)
@click.option("--due", default=None, help="Due date (YYYY-MM-DD or any readable date)")
@click.option("--minutes", "-m", type=int, default=None, help="Focus session length")
def add(title: tuple[str, ...], due: str | None, minutes: int | None):
    """Add a task."""
    _, ws = _open()
    try:
        task = wf.create_task(ws, " ".join(title), due, minutes)
    except CalmError as e:
        _fail(e)
    click.echo(f"Added {format_task_line(task)}")


@main.command()
@click.argument("text", nargs=-1, required=True)
def quick(text: tuple[str, ...]):
    """Quick add: "Call the bank TM 15m"."""
    config, ws = _open()
    try:
        task = wf.quick_add_task(ws, " ".join(text), today_key(config))
    except CalmError as e:
        _fail(e)
    due = f" due {task.due_date}" if task.due_date else ""
    click.echo(f"Added {format_task_line(task)}{due}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--today", "today", default=None, help="Plan as of this day (YYYY-MM-DD)")
def tasks(as_json: bool, today: str | None):
    """Show the planner buckets."""
    config, ws = _open()
    try:
        snapshot = wf.get_planner_snapshot(ws, today or today_key(config))
    except CalmError as e:
        _fail(e)

    if as_json:
        buckets = {name: [t.to_dict() for t in items] for name, items in snapshot.buckets().items()}
        click.echo(
            json.dumps(
                {
                    "today_key": snapshot.today_key,
                    "buckets": buckets,
                    "yesterday_completed_count": snapshot.yesterday_completed_count,
                },
                indent=2,
            )
        )
    else:
        click.echo(format_snapshot(snapshot))


@main.command()
@click.argument("task_ref")
def done(task_ref: str):
    """Mark a task done."""
    _, ws = _open()
    try:
        task = wf.find_task(ws, task_ref)
        outcome = wf.mark_task_done(ws, task.id)
    except CalmError as e:
        _fail(e)
    _report(outcome, f"Done: {task.title}", f"Already done: {task.title}")


@main.command()
@click.argument("task_ref")
def drop(task_ref: str):
    """Drop a task without doing it."""
    _, ws = _open()
    try:
        task = wf.find_task(ws, task_ref)
        outcome = wf.drop_task(ws, task.id)
    except CalmError as e:
        _fail(e)
    _report(outcome, f"Dropped: {task.title}", f"Already dropped: {task.title}")


@main.command()
@click.argument("task_ref")
@click.argument("due_date", required=False, default="")
def due(task_ref: str, due_date: str):
    """Reschedule a task (omit the date to unschedule it)."""
    config, ws = _open()
    try:
        task = wf.find_task(ws, task_ref)
        task = wf.set_task_due_date(ws, task.id, due_date, today_key(config))
    except CalmError as e:
        _fail(e)
    click.echo(f"{task.title}: {task.due_date or 'unscheduled'}")


# ============== Daily ==============


@main.command()
@click.argument("task_ref")
@click.option("--date", "-d", "date_key", default=None, help="Day to commit to (YYYY-MM-DD)")
def commit(task_ref: str, date_key: str | None):
    """Commit to a task for a day."""
    config, ws = _open()
    try:
        task = wf.find_task(ws, task_ref)
        outcome = wf.add_commitment_for_date(ws, date_key or today_key(config), task.id)
    except CalmError as e:
        _fail(e)
    _report(outcome, f"Committed: {task.title}", f"Already committed: {task.title}")


@main.command()
@click.argument("task_ref")
@click.option("--date", "-d", "date_key", default=None, help="Day to remove it from (YYYY-MM-DD)")
def uncommit(task_ref: str, date_key: str | None):
    """Remove a commitment."""
    config, ws = _open()
    try:
        task = wf.find_task(ws, task_ref)
        outcome = wf.remove_commitment_for_date(ws, date_key or today_key(config), task.id)
    except CalmError as e:
        _fail(e)
    _report(outcome, f"Removed: {task.title}", f"Not committed: {task.title}")


@main.command()
@click.option("--date", "-d", "date_key", default=None, help="Day to show (YYYY-MM-DD)")
def today(date_key: str | None):
    """Show commitments, rituals and the reset banner."""
    config, ws = _open()
    try:
        key = date_key or today_key(config)
        model = wf.get_today_daily_model(ws, key)
        reentry = wf.get_reentry_status(ws, key)
    except CalmError as e:
        _fail(e)
    click.echo(format_daily(model, reentry, config.tzinfo))


@main.command()
@click.argument("kind", type=click.Choice([r.value for r in RitualKind]))
@click.option("--date", "-d", "date_key", default=None, help="Day of the ritual (YYYY-MM-DD)")
def ritual(kind: str, date_key: str | None):
    """Record a morning, evening or reset check-in."""
    config, ws = _open()
    key = date_key or today_key(config)
    try:
        if kind == RitualKind.RESET.value:
            decisions = wf.list_reset_decision_tasks(ws, key)
            if decisions:
                click.echo("Still waiting for a decision:")
                for task in decisions:
                    click.echo(format_task_line(task, key))
        wf.mark_ritual_completed(ws, key, kind)
    except CalmError as e:
        _fail(e)
    click.echo(f"✓ {kind.capitalize()} ritual recorded for {key}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def reentry(as_json: bool):
    """How long since the last evening review."""
    config, ws = _open()
    status = wf.get_reentry_status(ws, today_key(config))
    if as_json:
        click.echo(
            json.dumps(
                {
                    "today_key": status.today_key,
                    "days_since_last_evening": status.days_since_last_evening,
                    "should_show_reset_banner": status.should_show_reset_banner,
                },
                indent=2,
            )
        )
    elif status.days_since_last_evening is None:
        click.echo("No evening review on record yet.")
    else:
        click.echo(f"Days since last evening review: {status.days_since_last_evening}")
        if status.should_show_reset_banner:
            click.echo("Time for a reset: run `calm ritual reset`.")


# ============== Ideas ==============


@main.group(invoke_without_command=True)
@click.pass_context
def ideas(ctx):
    """Manage the ranked idea list."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(ideas_list)


@ideas.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def ideas_list(as_json: bool = False):
    """List active ideas in rank order."""
    _, ws = _open()
    active = wf.list_active_ideas(ws)
    if as_json:
        click.echo(json.dumps([i.to_dict() for i in active], indent=2))
    else:
        click.echo(format_ideas(active))


@ideas.command("add")
@click.argument("title", nargs=-1, required=True)
@click.option("--url", default=None, help="Reference link (http/https)")
def ideas_add(title: tuple[str, ...], url: str | None):
    """Add an idea to the end of the list."""
    _, ws = _open()
    try:
        idea = wf.create_idea(ws, " ".join(title), url)
    except CalmError as e:
        _fail(e)
    click.echo(f"Added idea #{idea.rank}: {idea.title}")


@ideas.command("move")
@click.argument("idea_ref")
@click.argument("direction", type=click.Choice(["up", "down"]))
def ideas_move(idea_ref: str, direction: str):
    """Swap an idea with its neighbour."""
    _, ws = _open()
    try:
        idea = wf.find_idea(ws, idea_ref)
        outcome = wf.move_idea(ws, idea.id, direction)
    except CalmError as e:
        _fail(e)
    _report(outcome, f"Moved {direction}: {idea.title}", f"Already at the {'top' if direction == 'up' else 'bottom'}.")


@ideas.command("reorder")
@click.argument("idea_ref")
@click.argument("position", type=int)
def ideas_reorder(idea_ref: str, position: int):
    """Move an idea to a 1-based position."""
    _, ws = _open()
    try:
        idea = wf.find_idea(ws, idea_ref)
        outcome = wf.reorder_idea(ws, idea.id, position - 1)
    except CalmError as e:
        _fail(e)
    _report(outcome, f"Reordered: {idea.title}", "Nothing to change.")


@ideas.command("archive")
@click.argument("idea_ref")
def ideas_archive(idea_ref: str):
    """Archive an idea."""
    _, ws = _open()
    try:
        idea = wf.find_idea(ws, idea_ref)
        wf.archive_idea(ws, idea.id)
    except CalmError as e:
        _fail(e)
    click.echo(f"Archived: {idea.title}")


# ============== Focus ==============


class TerminalPresenter:
    """Rings the terminal bell when the session surface should come forward."""

    def show(self) -> None:
        click.echo("\a", nl=False)

    def hide(self) -> None:
        click.echo()


@main.command()
@click.argument("task_ref")
@click.option("--minutes", "-m", type=int, default=None, help="Session length (defaults to the task's)")
def focus(task_ref: str, minutes: int | None):
    """Run a focus session on a task in the foreground."""
    config, ws = _open()
    try:
        task = wf.find_task(ws, task_ref)
    except CalmError as e:
        _fail(e)

    scheduler = BackgroundScheduler(timezone=config.timezone) if config.timezone else BackgroundScheduler()
    controller = FocusSessionController(
        ticker=SchedulerTicker(scheduler),
        presenter=TerminalPresenter(),
        default_session_minutes=config.default_session_minutes,
        default_extension_minutes=config.extension_minutes,
    )
    settled = threading.Event()

    def on_state(session: FocusSession) -> None:
        if session.status is FocusStatus.RUNNING:
            click.echo(f"\r{format_focus(session, controller.clock())}   ", nl=False)
        else:
            settled.set()

    controller.subscribe(on_state)
    scheduler.start()
    try:
        if not controller.start(task.id, task.title, minutes or task.session_length_minutes):
            _fail(CalmError("Could not start a focus session for that task."))

        while True:
            while not settled.wait(0.5):
                pass
            settled.clear()
            if controller.get_state().status is FocusStatus.IDLE:
                break

            click.echo(f"\n{format_focus(controller.get_state(), controller.clock())}")
            choice = click.prompt(
                "[c]ontinue, [e]xtend, [d]one, [s]top",
                type=click.Choice(["c", "e", "d", "s"]),
                default="s",
            )
            if choice == "c":
                controller.continue_session()
            elif choice == "e":
                controller.extend()
            elif choice == "d":
                wf.mark_task_done(ws, task.id)
                click.echo(f"Done: {task.title}")
                controller.close_complete()
            else:
                controller.close_complete()
    except KeyboardInterrupt:
        controller.stop()
        click.echo("Focus session stopped.")
    finally:
        scheduler.shutdown(wait=False)


# ============== Bot ==============


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def bot(debug: bool):
    """Run the Telegram bot (hosts the focus timer)."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )

    try:
        from .telegram_bot import run_bot

        click.echo("Starting Calm Telegram bot...")
        click.echo("Press Ctrl+C to stop")
        run_bot()
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nBot stopped.")


if __name__ == "__main__":
    main()

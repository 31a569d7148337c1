"""Telegram command handlers."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from . import workflows as wf
from .config import Config, today_key
from .core.daily import RitualKind
from .core.digest import format_daily, format_focus, format_snapshot, format_task_line
from .errors import CalmError
from .focus import FocusSessionController
from .telegram_format import send_markdown

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "*Calm Commands*\n\n"
    "/today - Commitments and rituals\n"
    "/plan - All planner buckets\n"
    "/add <text> - Quick add (e.g. `Call bank TM 15m`)\n"
    "/commit <id> - Commit to a task today\n"
    "/done <id> - Mark a task done\n"
    "/focus <id> [minutes] - Start a focus block\n"
    "/focus - Show the running block\n"
    "/extend [minutes] - Add time to the block\n"
    "/continue - Another block on the same task\n"
    "/stop - End the block\n"
    "/morning, /evening, /reset - Record a ritual\n"
)


def _services(context: ContextTypes.DEFAULT_TYPE) -> tuple[Config, wf.Workspace, FocusSessionController]:
    data = context.application.bot_data
    return data["config"], data["workspace"], data["controller"]


async def _failed(update: Update, e: Exception) -> None:
    logger.warning(f"Command failed: {e}")
    await update.message.reply_text(f"Could not complete that action: {e}")


# ============== Simple Commands ==============


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text("Hi! I'm Calm, your planner.\n\nSend /help to see what I can do.")


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text(HELP_TEXT, parse_mode="Markdown")


async def today_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /today - commitments, rituals and the reset banner."""
    config, ws, _ = _services(context)
    key = today_key(config)
    model = wf.get_today_daily_model(ws, key)
    reentry = wf.get_reentry_status(ws, key)
    await send_markdown(update.message, format_daily(model, reentry, config.tzinfo))


async def plan_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /plan - the full planner snapshot."""
    config, ws, _ = _services(context)
    snapshot = wf.get_planner_snapshot(ws, today_key(config))
    await send_markdown(update.message, format_snapshot(snapshot))


# ============== Task Commands ==============


async def add_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /add <text>."""
    config, ws, _ = _services(context)
    text = " ".join(context.args or [])
    try:
        task = wf.quick_add_task(ws, text, today_key(config))
    except CalmError as e:
        await _failed(update, e)
        return
    await send_markdown(update.message, f"Added {format_task_line(task, today_key(config))}")


async def commit_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /commit <id>."""
    config, ws, _ = _services(context)
    try:
        task = wf.find_task(ws, " ".join(context.args or []))
        outcome = wf.add_commitment_for_date(ws, today_key(config), task.id)
    except CalmError as e:
        await _failed(update, e)
        return
    verb = "Committed" if outcome.changed else "Already committed"
    await update.message.reply_text(f"{verb}: {task.title}")


async def done_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /done <id>."""
    _, ws, _ = _services(context)
    try:
        task = wf.find_task(ws, " ".join(context.args or []))
        outcome = wf.mark_task_done(ws, task.id)
    except CalmError as e:
        await _failed(update, e)
        return
    verb = "Done" if outcome.changed else "Already done"
    await update.message.reply_text(f"{verb}: {task.title}")


# ============== Focus Commands ==============


async def focus_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /focus [id] [minutes]."""
    _, ws, controller = _services(context)
    args = list(context.args or [])
    if not args:
        await update.message.reply_text(format_focus(controller.get_state(), controller.clock()))
        return

    minutes = None
    if len(args) > 1 and args[-1].isdigit():
        minutes = int(args.pop())
    try:
        task = wf.find_task(ws, " ".join(args))
    except CalmError as e:
        await _failed(update, e)
        return

    if not controller.start(task.id, task.title, minutes or task.session_length_minutes):
        await update.message.reply_text("Could not start a focus block for that task.")
        return
    await update.message.reply_text(format_focus(controller.get_state(), controller.clock()))


async def stop_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /stop."""
    _, _, controller = _services(context)
    controller.stop()
    await update.message.reply_text("Focus block stopped.")


async def extend_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /extend [minutes]."""
    _, _, controller = _services(context)
    args = context.args or []
    minutes = int(args[0]) if args and args[0].isdigit() else None
    if not controller.extend(minutes):
        await update.message.reply_text("No focus block to extend.")
        return
    await update.message.reply_text(format_focus(controller.get_state(), controller.clock()))


async def continue_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /continue."""
    _, _, controller = _services(context)
    if not controller.continue_session():
        await update.message.reply_text("No previous focus block to continue.")
        return
    await update.message.reply_text(format_focus(controller.get_state(), controller.clock()))


# ============== Rituals ==============


def make_ritual_handler(ritual: RitualKind):
    """Handler for /morning, /evening or /reset."""

    async def handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
        config, ws, _ = _services(context)
        key = today_key(config)
        lines = []
        if ritual is RitualKind.RESET:
            decisions = wf.list_reset_decision_tasks(ws, key)
            if decisions:
                lines.append("*Waiting for a decision*")
                lines.extend(format_task_line(t, key) for t in decisions)
                lines.append("")
        try:
            wf.mark_ritual_completed(ws, key, ritual)
        except CalmError as e:
            await _failed(update, e)
            return
        lines.append(f"✓ {ritual.value.capitalize()} ritual recorded for {key}")
        await send_markdown(update.message, "\n".join(lines))

    handler.__name__ = f"{ritual.value}_handler"
    return handler

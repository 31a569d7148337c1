"""Calm Telegram Bot.

The bot process is long-lived, so it hosts the focus controller: the timer
keeps running whether or not anyone is looking at the chat.
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from telegram import Bot, Update
from telegram.ext import Application, CommandHandler, MessageHandler, filters

from . import workflows as wf
from .adapters.scheduler_ticker import SchedulerTicker
from .config import Config, load_config, today_key
from .core.daily import RitualKind
from .core.digest import format_daily, format_focus, format_snapshot
from .core.focus import FocusSession, FocusStatus
from .focus import FocusSessionController
from .telegram_format import send_markdown
from .telegram_handlers import (
    add_handler,
    commit_handler,
    continue_handler,
    done_handler,
    extend_handler,
    focus_handler,
    help_handler,
    make_ritual_handler,
    plan_handler,
    start_handler,
    stop_handler,
    today_handler,
)

logger = logging.getLogger(__name__)


class AuthFilter(filters.BaseFilter):
    """Filter to only allow authorized users."""

    def __init__(self, allowed_users: list[int]):
        super().__init__()
        self.allowed_users = allowed_users

    def check_update(self, update: Update) -> bool:
        if not self.allowed_users:
            return True  # No restriction if no users configured
        user = update.effective_user
        if user is None:
            return False
        return user.id in self.allowed_users


class FocusNotifier:
    """Pushes a chat message when a focus block completes.

    Called from whichever thread runs the tick, so messages are handed to the
    bot's event loop.
    """

    def __init__(self, bot: Bot, user_ids: list[int]):
        self.bot = bot
        self.user_ids = user_ids
        self.loop: asyncio.AbstractEventLoop | None = None
        self._last_status = FocusStatus.IDLE

    def __call__(self, session: FocusSession) -> None:
        previous, self._last_status = self._last_status, session.status
        if session.status is not FocusStatus.COMPLETE or previous is FocusStatus.COMPLETE:
            return
        if self.loop is None:
            logger.warning("Focus block completed before the bot loop was ready")
            return
        asyncio.run_coroutine_threadsafe(self.notify(session), self.loop)

    async def notify(self, session: FocusSession) -> None:
        text = f"{format_focus(session, session.ends_at or 0)}\n\n/continue, /extend or /stop"
        for user_id in self.user_ids:
            try:
                await send_markdown(self.bot, text, chat_id=user_id)
            except Exception as e:
                logger.error(f"Failed to send focus notice to user {user_id}: {e}")


def create_application(
    config: Config,
    workspace: wf.Workspace,
    controller: FocusSessionController,
) -> Application:
    """Create and configure the Telegram bot application."""
    if not config.telegram_bot_token:
        raise ValueError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Get a token from @BotFather on Telegram and add it to calm.conf"
        )

    app = Application.builder().token(config.telegram_bot_token).build()
    app.bot_data.update(config=config, workspace=workspace, controller=controller)

    auth_filter = AuthFilter(config.telegram_allowed_users)

    commands = {
        "start": start_handler,
        "help": help_handler,
        "today": today_handler,
        "plan": plan_handler,
        "add": add_handler,
        "commit": commit_handler,
        "done": done_handler,
        "focus": focus_handler,
        "stop": stop_handler,
        "extend": extend_handler,
        "continue": continue_handler,
    }
    for ritual in RitualKind:
        commands[ritual.value] = make_ritual_handler(ritual)

    for name, handler in commands.items():
        app.add_handler(CommandHandler(name, handler, filters=auth_filter))

    async def unauthorized_handler(update: Update, context):
        user = update.effective_user
        logger.warning(f"Unauthorized access attempt from user {user.id} ({user.username})")
        await update.message.reply_text(
            "Unauthorized. This bot is private.\n"
            "If you're the owner, add your Telegram user ID to TELEGRAM_ALLOWED_USERS in calm.conf"
        )

    if config.telegram_allowed_users:
        app.add_handler(MessageHandler(~auth_filter & filters.ALL, unauthorized_handler))

    return app


def _parse_time(value: str) -> tuple[int, int] | None:
    try:
        hour, minute = map(int, value.split(":"))
    except ValueError:
        return None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        return None
    return hour, minute


def setup_reminders(
    scheduler: AsyncIOScheduler,
    app: Application,
    config: Config,
    workspace: wf.Workspace,
) -> None:
    """Schedule the morning plan and the evening review reminder."""
    if not config.telegram_allowed_users:
        logger.info("No TELEGRAM_ALLOWED_USERS configured - skipping reminders")
        return

    jobs = [
        ("morning_plan", config.morning_reminder_time, send_morning_plan),
        ("evening_reminder", config.evening_reminder_time, send_evening_reminder),
    ]
    for job_id, when, func in jobs:
        parsed = _parse_time(when) if when else None
        if parsed is None:
            logger.warning(f"Invalid reminder time for {job_id}: {when!r}")
            continue
        hour, minute = parsed
        scheduler.add_job(
            func,
            CronTrigger(hour=hour, minute=minute),
            args=[app.bot, config, workspace],
            id=job_id,
            replace_existing=True,
        )
        logger.info(f"Scheduled {job_id} at {hour:02d}:{minute:02d}")


async def send_morning_plan(bot: Bot, config: Config, workspace: wf.Workspace):
    """Send today's plan, with the reset banner when reviews were skipped."""
    key = today_key(config)
    model = wf.get_today_daily_model(workspace, key)
    if model.daily and model.daily.morning_completed_at:
        logger.info("Morning ritual already done, skipping plan")
        return

    reentry = wf.get_reentry_status(workspace, key)
    text = "\n\n".join(
        [
            format_daily(model, reentry, config.tzinfo),
            format_snapshot(wf.get_planner_snapshot(workspace, key)),
            "Send /morning once you've picked today's commitments.",
        ]
    )
    for user_id in config.telegram_allowed_users:
        try:
            await send_markdown(bot, text, chat_id=user_id)
        except Exception as e:
            logger.error(f"Failed to send morning plan to user {user_id}: {e}")


async def send_evening_reminder(bot: Bot, config: Config, workspace: wf.Workspace):
    """Remind about the evening review unless it already happened today."""
    model = wf.get_today_daily_model(workspace, today_key(config))
    if model.daily and model.daily.evening_completed_at:
        logger.info("Evening ritual already done, skipping reminder")
        return

    logger.info("Sending evening reminder")
    for user_id in config.telegram_allowed_users:
        try:
            await bot.send_message(
                chat_id=user_id,
                text="Time for your evening review.\n\nSend /evening when you're done.",
            )
        except Exception as e:
            logger.error(f"Failed to send evening reminder to user {user_id}: {e}")


def run_bot():
    """Run the Telegram bot."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = load_config()
    workspace = wf.open_workspace(config)
    scheduler = AsyncIOScheduler(timezone=config.timezone or None)
    controller = FocusSessionController(
        ticker=SchedulerTicker(scheduler),
        default_session_minutes=config.default_session_minutes,
        default_extension_minutes=config.extension_minutes,
    )

    app = create_application(config, workspace, controller)
    notifier = FocusNotifier(app.bot, config.telegram_allowed_users)
    controller.subscribe(notifier)
    setup_reminders(scheduler, app, config, workspace)

    async def post_init(application: Application) -> None:
        """Start scheduler after event loop is running."""
        notifier.loop = asyncio.get_running_loop()
        scheduler.start()
        logger.info("Scheduler started")

    app.post_init = post_init

    if config.telegram_allowed_users:
        logger.info(f"Bot authorized for users: {config.telegram_allowed_users}")
    else:
        logger.warning("No TELEGRAM_ALLOWED_USERS configured - bot is open to anyone!")

    logger.info("Starting Calm Telegram bot...")
    app.run_polling(allowed_updates=Update.ALL_TYPES)

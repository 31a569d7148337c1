"""Markdown delivery to Telegram chats."""

import logging

import telegramify_markdown
from telegram.error import BadRequest

logger = logging.getLogger(__name__)

# Telegram caps messages at 4096 characters; MarkdownV2 escaping adds some
MAX_CHUNK = 3500


def split_lines(text: str, limit: int = MAX_CHUNK) -> list[str]:
    """Group whole lines into chunks no longer than ``limit``.

    A single line longer than ``limit`` is cut at the limit.
    """
    chunks: list[str] = []
    current = ""
    for line in text.splitlines():
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            candidate = line
        current = candidate
    if current:
        chunks.append(current)
    return chunks


async def send_markdown(bot_or_msg, text: str, *, chat_id: int | None = None):
    """Send planner markdown to a chat as MarkdownV2.

    bot_or_msg: a Bot instance (pass chat_id) or an Update.message (calls reply_text).
    Chunks Telegram refuses to parse are resent as plain text.
    """
    for chunk in split_lines(text):
        converted = telegramify_markdown.markdownify(chunk)
        try:
            await _send(bot_or_msg, converted, chat_id, parse_mode="MarkdownV2")
        except BadRequest as e:
            logger.warning(f"Telegram rejected markdown ({e}); sending plain text")
            await _send(bot_or_msg, chunk, chat_id, parse_mode=None)


async def _send(bot_or_msg, text: str, chat_id: int | None, parse_mode: str | None):
    if chat_id is not None:
        await bot_or_msg.send_message(chat_id=chat_id, text=text, parse_mode=parse_mode)
    else:
        await bot_or_msg.reply_text(text, parse_mode=parse_mode)

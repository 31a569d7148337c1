"""Configuration management for Calm."""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .core.dates import to_date_key
from .core.sessions import (
    DEFAULT_SESSION_EXTENSION_MINUTES,
    DEFAULT_SESSION_LENGTH_MINUTES,
    resolve_session_length,
)

logger = logging.getLogger(__name__)

CALM_HOME = Path(os.environ.get("CALM_HOME", Path.home() / "calm"))
CONFIG_FILE = CALM_HOME / "config" / "calm.conf"
DATA_DIR = CALM_HOME / "data"


@dataclass
class Config:
    """Calm configuration."""

    data_file: str = ""
    # Empty means the system's local zone
    timezone: str = ""
    default_session_minutes: int = DEFAULT_SESSION_LENGTH_MINUTES
    extension_minutes: int = DEFAULT_SESSION_EXTENSION_MINUTES
    # Telegram bot settings
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)
    morning_reminder_time: str = "08:00"
    evening_reminder_time: str = "21:00"

    @property
    def data_path(self) -> Path:
        if self.data_file:
            return Path(self.data_file).expanduser()
        return DATA_DIR / "calm.json"

    @property
    def tzinfo(self) -> tzinfo | None:
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {self.timezone!r}, using system local time")
            return None


def today_key(config: Config, now: datetime | None = None) -> str:
    """The user's current calendar day. The only place the wall clock picks "today"."""
    tz = config.tzinfo
    if now is None:
        now = datetime.now(tz) if tz else datetime.now()
    return to_date_key(now, tz)


def _parse_minutes(key: str, value: str, default: int) -> int:
    try:
        minutes = int(value)
    except ValueError:
        logger.warning(f"Invalid {key.upper()} value {value!r}, using {default}")
        return default
    resolved = resolve_session_length(minutes, default)
    if resolved != minutes:
        logger.warning(f"{key.upper()} out of range ({minutes}), using {default}")
    return resolved


def load_config(path: Path | None = None) -> Config:
    """Load configuration from calm.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value[:1] in ('"', "'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            value = value.split("#")[0].strip()

        match key:
            case "data_file":
                config.data_file = value
            case "timezone":
                config.timezone = value
            case "default_session_minutes":
                config.default_session_minutes = _parse_minutes(
                    key, value, DEFAULT_SESSION_LENGTH_MINUTES
                )
            case "extension_minutes":
                config.extension_minutes = _parse_minutes(
                    key, value, DEFAULT_SESSION_EXTENSION_MINUTES
                )
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_allowed_users":
                users = []
                for user in value.split(","):
                    user = user.strip()
                    if not user:
                        continue
                    try:
                        users.append(int(user))
                    except ValueError:
                        logger.warning(f"Ignoring non-numeric Telegram user id: {user!r}")
                config.telegram_allowed_users = users
            case "morning_reminder_time":
                config.morning_reminder_time = value
            case "evening_reminder_time":
                config.evening_reminder_time = value
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    return config

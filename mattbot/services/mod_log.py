"""
mattbot.services.mod_log — Moderation Log Channel Writer
==========================================================

Community-tool actions (crowd mutes, reported messages) are posted to a
text channel named by ``log_channel_name`` (default ``#bot_log``) so
moderators can review them.
"""

from __future__ import annotations

import enum
import logging
from datetime import UTC, datetime

import discord

from mattbot.constants import ERROR, INFO, WARNING

logger = logging.getLogger(__name__)


class LogLevel(enum.Enum):
    INFO = INFO
    WARN = WARNING
    ERROR = ERROR


def find_log_channel(guild: discord.Guild, name: str) -> discord.TextChannel | None:
    """Return the guild's mod-log text channel, or ``None`` if it has none."""
    return discord.utils.get(guild.text_channels, name=name)


def format_log_line(now: datetime, level: LogLevel, text: str) -> str:
    """``[HH:MM:SS] <icon> text`` — the timestamp is rendered in UTC."""
    stamp = now.astimezone(UTC).strftime("%H:%M:%S")
    return f"`[{stamp}]` {level.value} {text}"


async def log_action(
    channel: discord.abc.Messageable,
    level: LogLevel,
    text: str,
    embed: discord.Embed | None = None,
    *,
    now: datetime | None = None,
) -> bool:
    """Post one log entry.  Returns ``False`` if Discord rejected it."""
    line = format_log_line(now or datetime.now(UTC), level, text)
    try:
        await channel.send(
            line,
            embed=embed,
            allowed_mentions=discord.AllowedMentions.none(),
        )
    except discord.HTTPException:
        logger.exception("Failed to write to the mod log channel")
        return False
    return True

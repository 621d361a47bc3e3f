"""
mattbot.bot.cogs.message_reports — Reaction-Vote Deletions
============================================================

When enough members react to a message younger than
``message_report_duration`` hours with the report emoji (🗑️ by default),
the message is copied to the mod log and deleted.

Members with the "No Reports" role don't count as voters.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from mattbot.constants import NO_REPORTS_ROLE, format_full_user
from mattbot.engine.votes import parse_emoji
from mattbot.services.community_vote import VoteRule, gather_vote
from mattbot.services.mod_log import LogLevel, log_action

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)


def _can_delete(me: discord.Member, channel: discord.TextChannel) -> bool:
    return channel.permissions_for(me).manage_messages


class MessageReports(commands.Cog, name="MessageReports"):
    """Community-driven message removal via reaction votes."""

    def __init__(self, bot: MattBot) -> None:
        self.bot = bot
        cfg = bot.cfg
        self.rule = VoteRule(
            name="Message report",
            emoji=parse_emoji(cfg.message_report_emoji),
            threshold=cfg.message_report_threshold,
            window=timedelta(hours=cfg.message_report_duration),
            exempt_role_name=NO_REPORTS_ROLE,
            bot_can_act=_can_delete,
        )

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        try:
            await self._handle_reaction(payload)
        except Exception:
            logger.exception(
                "Error processing message report on message %s from user %s",
                payload.message_id, payload.user_id,
            )

    async def _handle_reaction(self, payload: discord.RawReactionActionEvent) -> None:
        outcome = await gather_vote(self.bot, payload, self.rule)
        if outcome is None:
            return

        author = outcome.message.author
        await log_action(
            outcome.log_channel,
            LogLevel.WARN,
            f"{format_full_user(author)}'s message was reported in "
            f"{outcome.channel.mention} by:\n\n{outcome.tally.voter_list}",
            outcome.embed,
        )
        try:
            await outcome.message.delete()
        except discord.NotFound:
            return  # already gone (another vote or a moderator got there first)
        logger.info(
            "Deleted reported message %d by %s (%d)",
            outcome.message.id, author.name, author.id,
        )


async def setup(bot: MattBot) -> None:
    await bot.add_cog(MessageReports(bot))

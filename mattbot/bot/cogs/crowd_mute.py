"""
mattbot.bot.cogs.crowd_mute — Reaction-Vote Timeouts
======================================================

When enough members react to a recent message with the crowd-mute emoji,
the author is timed out for ``crowd_mute_duration`` minutes, the action
is written to the mod log, and the message gets a public reply.

Members with the "No Crowdmute" role don't count as voters.  Moderators
(``ban_members``) and bots can't be crowd muted.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from mattbot.constants import NO_CROWDMUTE_ROLE, format_full_user
from mattbot.engine.votes import parse_emoji
from mattbot.services.community_vote import VoteRule, gather_vote
from mattbot.services.mod_log import LogLevel, log_action

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)


def _can_timeout(me: discord.Member, channel: discord.TextChannel) -> bool:
    return me.guild_permissions.moderate_members


class CrowdMute(commands.Cog, name="CrowdMute"):
    """Community-driven timeouts via reaction votes."""

    def __init__(self, bot: MattBot) -> None:
        self.bot = bot
        cfg = bot.cfg
        self.duration = timedelta(minutes=cfg.crowd_mute_duration)
        self.rule = VoteRule(
            name="Crowd mute",
            emoji=parse_emoji(cfg.crowd_mute_emoji),
            threshold=cfg.crowd_mute_threshold,
            window=self.duration,
            exempt_role_name=NO_CROWDMUTE_ROLE,
            bot_can_act=_can_timeout,
            guild_ids=cfg.crowd_mute_guild_ids,
        )

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        try:
            await self._handle_reaction(payload)
        except Exception:
            logger.exception(
                "Error processing crowd mute vote on message %s from user %s",
                payload.message_id, payload.user_id,
            )

    async def _handle_reaction(self, payload: discord.RawReactionActionEvent) -> None:
        outcome = await gather_vote(self.bot, payload, self.rule)
        if outcome is None:
            return

        author = outcome.message.author
        if not isinstance(author, discord.Member):
            return  # left the guild; nothing to time out
        if author.is_timed_out():
            return

        minutes = self.bot.cfg.crowd_mute_duration
        await author.timeout(self.duration, reason="Crowd muted")
        logger.info("Crowd muted %s (%d) for %d minutes", author.name, author.id, minutes)

        await log_action(
            outcome.log_channel,
            LogLevel.WARN,
            f"{format_full_user(author)} was crowd muted for {minutes} minutes in "
            f"{outcome.channel.mention} by:\n\n{outcome.tally.voter_list}",
            outcome.embed,
        )
        await outcome.message.reply(f"This user has been crowd muted for {minutes} minutes.")


async def setup(bot: MattBot) -> None:
    await bot.add_cog(CrowdMute(bot))

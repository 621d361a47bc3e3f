"""
mattbot.services.community_vote — Reaction Vote Gathering
==========================================================

Shared front half of the crowd-mute and message-report cogs: turn a raw
reaction event into either ``None`` (nothing to do) or a
:class:`VoteOutcome` describing a message whose vote reached its
threshold.  The cogs decide what to *do* with the outcome.

Gates, in order:

1. Feature enabled (threshold > 0), guild event, human reactor.
2. Reaction uses the configured vote emoji.
3. Guild allowed, channel is a text channel, a mod-log channel exists.
4. The bot holds the permission the action needs.
5. Message exists, author is neither a bot nor a moderator.
6. Message is younger than the vote window and has content or an image.
7. Valid votes >= threshold.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

import discord

from mattbot.constants import format_full_user
from mattbot.engine.votes import Voter, VoteTally, emoji_matches, is_within_window, tally_votes
from mattbot.services.embeds import build_quoted_message_embed
from mattbot.services.mod_log import find_log_channel

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)

PermissionCheck = Callable[[discord.Member, discord.TextChannel], bool]


@dataclass(frozen=True, slots=True)
class VoteRule:
    """Configuration for one kind of community vote."""

    name: str
    emoji: discord.PartialEmoji
    threshold: int
    window: timedelta
    exempt_role_name: str
    bot_can_act: PermissionCheck
    guild_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class VoteOutcome:
    guild: discord.Guild
    channel: discord.TextChannel
    message: discord.Message
    log_channel: discord.TextChannel
    tally: VoteTally
    embed: discord.Embed


def as_partial_emoji(emoji: discord.PartialEmoji | discord.Emoji | str) -> discord.PartialEmoji:
    if isinstance(emoji, discord.PartialEmoji):
        return emoji
    if isinstance(emoji, str):
        return discord.PartialEmoji(name=emoji)
    return discord.PartialEmoji(name=emoji.name, id=emoji.id, animated=emoji.animated)


def quote_message(message: discord.Message) -> tuple[str, str | None]:
    """Return ``(text, image_url)`` for the mod-log embed.

    Replies are prefixed with a mention of the user being replied to.
    """
    parts: list[str] = []
    ref = message.reference
    if ref is not None and isinstance(ref.resolved, discord.Message):
        parts.append(ref.resolved.author.mention)
    if message.content:
        parts.append(message.content)
    image_url = message.attachments[0].proxy_url if message.attachments else None
    return " ".join(parts), image_url


def is_moderator(user: discord.abc.User) -> bool:
    return isinstance(user, discord.Member) and user.guild_permissions.ban_members


async def collect_voters(
    reaction: discord.Reaction,
    guild: discord.Guild,
) -> list[Voter]:
    """Everyone who added *reaction*, with their current guild roles."""
    voters: list[Voter] = []
    async for user in reaction.users():
        member = guild.get_member(user.id)
        role_ids = frozenset(r.id for r in member.roles) if member else frozenset()
        voters.append(Voter(
            id=user.id,
            label=format_full_user(user),
            bot=user.bot,
            role_ids=role_ids,
        ))
    return voters


async def gather_vote(
    bot: MattBot,
    payload: discord.RawReactionActionEvent,
    rule: VoteRule,
) -> VoteOutcome | None:
    """Run every gate for *payload* under *rule*; ``None`` means do nothing."""
    if rule.threshold <= 0 or payload.guild_id is None:
        return None
    if payload.member is None or payload.member.bot:
        return None
    if not emoji_matches(payload.emoji, rule.emoji):
        return None
    if rule.guild_ids and payload.guild_id not in rule.guild_ids:
        return None

    guild = bot.get_guild(payload.guild_id)
    if guild is None:
        return None
    channel = guild.get_channel(payload.channel_id)
    if not isinstance(channel, discord.TextChannel):
        return None
    log_channel = find_log_channel(guild, bot.cfg.log_channel_name)
    if log_channel is None:
        return None

    if guild.me is None or not rule.bot_can_act(guild.me, channel):
        return None

    try:
        message = await channel.fetch_message(payload.message_id)
    except (discord.NotFound, discord.Forbidden, discord.HTTPException):
        return None

    if message.author.bot or is_moderator(message.author):
        return None
    if not is_within_window(message.created_at, rule.window):
        return None

    content, image_url = quote_message(message)
    if not content and not image_url:
        return None

    reaction = next(
        (r for r in message.reactions if emoji_matches(as_partial_emoji(r.emoji), rule.emoji)),
        None,
    )
    if reaction is None:
        return None

    exempt_role = discord.utils.get(guild.roles, name=rule.exempt_role_name)
    voters = await collect_voters(reaction, guild)
    tally = tally_votes(voters, message.author.id, exempt_role.id if exempt_role else None)
    if not tally.reached(rule.threshold):
        return None

    logger.info(
        "%s vote reached on message %d in guild %d (%d/%d)",
        rule.name, message.id, guild.id, tally.count, rule.threshold,
    )
    return VoteOutcome(
        guild=guild,
        channel=channel,
        message=message,
        log_channel=log_channel,
        tally=tally,
        embed=build_quoted_message_embed(content, message.jump_url, image_url),
    )

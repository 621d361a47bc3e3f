"""
mattbot.services.economy_service — Booster Rewards & Purchase Notices
=======================================================================

Glue between Discord and the :class:`~mattbot.engine.ledger.Ledger`:

- :func:`grant_booster_rewards` — the periodic sweep.  Member enumeration
  happens on the event loop; only the per-user ledger call takes the
  ledger lock (on a worker thread).
- :func:`notify_purchase` — DM the shop owner about a purchase.  Never
  raises; a failed DM must not undo a purchase.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import discord

from mattbot.constants import MATTBUCKS_EMOJI
from mattbot.engine.shop import ShopItem
from mattbot.storage import run_io

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)


def collect_boosters(guilds: Iterable[discord.Guild]) -> list[int]:
    """User ids of every human member currently boosting any of *guilds*.

    Each id appears once, in first-seen order.
    """
    seen: dict[int, None] = {}
    for guild in guilds:
        for member in guild.members:
            if member.bot or member.premium_since is None:
                continue
            seen.setdefault(member.id, None)
    return list(seen)


async def grant_booster_rewards(bot: MattBot, now: datetime | None = None) -> int:
    """Reward every current booster of the configured guilds.

    Returns the number of users actually credited (users rewarded less
    than one interval ago are skipped by the ledger).
    """
    if not bot.is_ready():
        logger.warning("Booster reward sweep skipped: client not ready")
        return 0

    cfg = bot.cfg
    guilds = []
    for guild_id in cfg.booster_reward_guild_ids:
        guild = bot.get_guild(guild_id)
        if guild is None:
            logger.warning(
                "Guild %d not found for booster check — bot may not be a member", guild_id,
            )
            continue
        guilds.append(guild)

    boosters = collect_boosters(guilds)
    interval = timedelta(hours=cfg.booster_reward_interval_hours)
    now = now or datetime.now(UTC)

    rewarded = 0
    for user_id in boosters:
        granted = await run_io(
            bot.ledger.grant_periodic_reward,
            user_id,
            cfg.booster_reward_amount,
            interval,
            now,
        )
        if granted:
            rewarded += 1
            logger.info(
                "Awarded %d MattBucks to %d for boosting", cfg.booster_reward_amount, user_id,
            )

    logger.info(
        "Booster reward sweep complete: %d boosters, %d rewarded", len(boosters), rewarded,
    )
    return rewarded


def format_purchase_notice(
    buyer: discord.abc.User,
    item: ShopItem,
    guild: discord.Guild | None,
    when: datetime,
) -> str:
    return (
        f"**New MattBucks Purchase!** {MATTBUCKS_EMOJI}\n"
        f"- **User:** {buyer.name} ({buyer.id})\n"
        f"- **Item:** {item.name} ({item.code})\n"
        f"- **Price:** {item.price} MattBucks\n"
        f"- **Guild:** {guild.name if guild else 'N/A'} ({guild.id if guild else 0})\n"
        f"- **Timestamp:** {when.astimezone(UTC):%Y-%m-%d %H:%M:%S} UTC"
    )


async def notify_purchase(
    bot: MattBot,
    buyer: discord.abc.User,
    item: ShopItem,
    guild: discord.Guild | None,
) -> bool:
    """DM ``purchase_notify_user_id`` about a purchase.  Returns success."""
    target_id = bot.cfg.purchase_notify_user_id
    if not target_id:
        return False

    try:
        target = bot.get_user(target_id) or await bot.fetch_user(target_id)
        await target.send(format_purchase_notice(buyer, item, guild, datetime.now(UTC)))
    except Exception:
        logger.exception("Failed to send purchase DM to %d", target_id)
        return False
    return True

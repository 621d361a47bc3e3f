"""
mattbot.services.embeds — Discord embed builders
==================================================

All embed construction lives here so cogs only need to supply data —
no layout concerns.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import discord

from mattbot.constants import MATTBUCKS_EMOJI
from mattbot.engine.shop import ShopItem

REPORT_COLOR = discord.Color(0xFF0000)


def build_shop_embed(
    items: Iterable[ShopItem],
    color: discord.Color | None = None,
) -> discord.Embed:
    """The shop inventory, one inline field per item."""
    embed = discord.Embed(
        title=f"MattBucks Shop Inventory {MATTBUCKS_EMOJI}",
        description="Use `/matt purchase <item_code>` to buy an item.",
        color=color or discord.Color.default(),
    )
    for item in items:
        embed.add_field(
            name=f"{item.emoji} {item.name}",
            value=(
                f"MattBucks Price: `{item.price}`\n"
                f"Purchase Code: `{item.code}`\n"
                f"{item.description}"
            ),
            inline=True,
        )
    embed.set_footer(text="For full help, use /matt explanation")
    return embed


def build_richest_embed(
    rows: Iterable[tuple[int, int]],
    names: Mapping[int, str],
) -> discord.Embed:
    """Top holders.  *names* maps user id → display name (missing ids fall back)."""
    lines = [
        f"{rank}. {names.get(user_id) or f'User ID: {user_id}'} - `{balance}` {MATTBUCKS_EMOJI}"
        for rank, (user_id, balance) in enumerate(rows, 1)
    ]
    return discord.Embed(
        title=f"Top MattBucks {MATTBUCKS_EMOJI} Holders",
        description="\n".join(lines),
        color=discord.Color.gold(),
    )


def build_quoted_message_embed(
    content: str,
    jump_url: str,
    image_url: str | None = None,
) -> discord.Embed:
    """Red embed quoting a voted-on message, for the mod log."""
    embed = discord.Embed(
        description=f"{content}\n\n[Jump Link]({jump_url})",
        color=REPORT_COLOR,
    )
    if image_url:
        embed.set_image(url=image_url)
    return embed

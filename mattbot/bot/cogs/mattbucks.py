"""
mattbot.bot.cogs.mattbucks — /matt Command Group
==================================================

Slash commands for the MattBucks economy:
- /matt explanation — what MattBucks are and how to earn them
- /matt shop — the redeemables
- /matt bucks — your balance
- /matt purchase — buy an item (DMs the shop owner)
- /matt richest — top holders
- /matt modify — admin balance edit

Ledger calls go through ``run_io`` so the lock and file write never block
the event loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from mattbot.constants import MATTBUCKS_EMOJI, RICHEST_LIMIT
from mattbot.engine.shop import SHOP_ITEMS, PurchaseStatus
from mattbot.services.economy_service import notify_purchase
from mattbot.services.embeds import build_richest_embed, build_shop_embed
from mattbot.storage import run_io

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)

ITEM_CHOICES = [
    app_commands.Choice(name=item.label, value=item.code) for item in SHOP_ITEMS.values()
]


class MattBucks(commands.GroupCog, group_name="matt", group_description="matt bucks commands"):
    """The MattBucks economy."""

    def __init__(self, bot: MattBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _explanation(self, mention: str) -> str:
        cfg = self.bot.cfg
        hours = cfg.booster_reward_interval_hours
        hours_text = f"{hours:g}"
        guild_lines = []
        for booster_guild in cfg.booster_reward_guilds:
            live = self.bot.get_guild(booster_guild.id)
            name = live.name if live else booster_guild.name
            invite = f" (<{booster_guild.invite}>)" if booster_guild.invite else ""
            guild_lines.append(f"\t\t\\- *{name}*{invite}\n")

        return (
            f"{mention}, MattBucks {MATTBUCKS_EMOJI} are a virtual currency that can be "
            "earned and redeemed!\n\n"
            "**Commands:**\n"
            "`/matt bucks` - shows how many MattBucks you have\n"
            "`/matt richest` - shows the richest users\n"
            "`/matt shop` - shows the available redeemables\n"
            "`/matt purchase <item>` - buys an item from the shop\n\n"
            "**Ways to earn MattBucks:**\n"
            f"`1.` __Nitro Boosting__ ~ Every {hours_text} hours, anyone boosting any of the "
            f"following servers gets {cfg.booster_reward_amount} MattBuck\n"
            + "".join(guild_lines)
            + "`2.` __Giveaways__ ~ Sometimes matt will just give away MattBucks randomly\n"
            "Note: All the above methods stack."
        )

    async def _resolve_names(self, user_ids: list[int]) -> dict[int, str]:
        names: dict[int, str] = {}
        for user_id in user_ids:
            user = self.bot.get_user(user_id)
            if user is None:
                try:
                    user = await self.bot.fetch_user(user_id)
                except (discord.NotFound, discord.HTTPException):
                    continue
            names[user_id] = user.name
        return names

    # -------------------------------------------------------------------
    # /matt explanation
    # -------------------------------------------------------------------
    @app_commands.command(name="explanation", description="explains what MattBucks are")
    async def explanation(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(
            self._explanation(interaction.user.mention), ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /matt shop
    # -------------------------------------------------------------------
    @app_commands.command(name="shop", description="shows the available redeemables")
    async def shop(self, interaction: discord.Interaction) -> None:
        color = None
        if interaction.guild is not None and interaction.guild.me is not None:
            color = interaction.guild.me.color
        await interaction.response.send_message(
            embed=build_shop_embed(SHOP_ITEMS.values(), color),
            allowed_mentions=discord.AllowedMentions.none(),
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /matt bucks
    # -------------------------------------------------------------------
    @app_commands.command(name="bucks", description="shows how many MattBucks you have")
    async def bucks(self, interaction: discord.Interaction) -> None:
        balance = await run_io(self.bot.ledger.get_balance, interaction.user.id)
        await interaction.response.send_message(
            f"{interaction.user.mention}, you have `{balance}` MattBucks! {MATTBUCKS_EMOJI}",
            ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /matt purchase
    # -------------------------------------------------------------------
    @app_commands.command(name="purchase", description="buys an item from the shop")
    @app_commands.describe(item="The item you want to purchase from the shop")
    @app_commands.choices(item=ITEM_CHOICES)
    async def purchase(self, interaction: discord.Interaction, item: str) -> None:
        result = await run_io(self.bot.ledger.purchase, interaction.user.id, item)
        mention = interaction.user.mention

        if result.status is PurchaseStatus.UNKNOWN_ITEM:
            await interaction.response.send_message(
                "That item code is invalid. Please check the `/matt shop` for available items.",
                ephemeral=True,
            )
            return

        bought = result.item
        assert bought is not None
        if result.status is PurchaseStatus.INSUFFICIENT_FUNDS:
            await interaction.response.send_message(
                f"{mention}, you don't have enough MattBucks {MATTBUCKS_EMOJI} to purchase "
                f"**{bought.name}**.\n"
                f"You need `{bought.price}` but only have `{result.balance}`.",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"{mention}, you have successfully purchased **{bought.name}** for "
            f"`{bought.price}` MattBucks {MATTBUCKS_EMOJI}!\n"
            f"Your new balance is `{result.balance}` MattBucks.",
            ephemeral=True,
        )
        await notify_purchase(self.bot, interaction.user, bought, interaction.guild)

    # -------------------------------------------------------------------
    # /matt richest
    # -------------------------------------------------------------------
    @app_commands.command(name="richest", description="shows the richest users")
    async def richest(self, interaction: discord.Interaction) -> None:
        rows = await run_io(self.bot.ledger.top_balances, RICHEST_LIMIT)
        if not rows:
            await interaction.response.send_message(
                "Nobody has any MattBucks. Possible error or fresh start.", ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True)
        names = await self._resolve_names([user_id for user_id, _ in rows])
        await interaction.followup.send(
            embed=build_richest_embed(rows, names), ephemeral=True,
        )

    # -------------------------------------------------------------------
    # /matt modify
    # -------------------------------------------------------------------
    @app_commands.command(name="modify", description="Modify a user's MattBucks balance.")
    @app_commands.describe(
        user="The user whose balance you want to modify.",
        amount="The amount of MattBucks to add. Use a negative number to subtract.",
    )
    @app_commands.checks.has_permissions(administrator=True)
    async def modify(
        self,
        interaction: discord.Interaction,
        user: discord.Member,
        amount: int,
    ) -> None:
        old_balance, new_balance = await run_io(
            self.bot.ledger.adjust_balance, user.id, amount,
        )
        logger.info(
            "Admin %d modified balance of %d by %d (%d → %d)",
            interaction.user.id, user.id, amount, old_balance, new_balance,
        )

        action, direction = ("Added", "to") if amount >= 0 else ("Removed", "from")
        await interaction.response.send_message(
            f"{action} `{abs(amount)}` MattBucks {MATTBUCKS_EMOJI} {direction} {user.mention}.\n"
            f"Old balance: `{old_balance}`, New balance: `{new_balance}`.",
            allowed_mentions=discord.AllowedMentions.none(),
        )

    # -------------------------------------------------------------------
    # Error handler for missing permissions
    # -------------------------------------------------------------------
    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            await interaction.response.send_message(
                "\U0001f512 You need Administrator to use this command.",
                ephemeral=True,
            )
        else:
            raise error


async def setup(bot: MattBot) -> None:
    await bot.add_cog(MattBucks(bot))

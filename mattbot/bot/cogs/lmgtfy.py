"""
mattbot.bot.cogs.lmgtfy — "Let Me Google That For You" Context Menus
======================================================================

Two message context commands (right-click a message → Apps):
- **LMGTFY** — reply with a search link for the message's text
- **LMGPTTFY** — same, but a ChatGPT link

Members with the "No Context Commands" role can't use them.  The reply
only pings the author of the original message.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from mattbot.constants import NO_CONTEXT_COMMANDS_ROLE
from mattbot.engine.search import build_lmgpttfy_url, build_lmgtfy_url

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)


def is_prohibited(user: discord.abc.User, guild: discord.Guild | None) -> bool:
    """True if *user* holds the guild's "No Context Commands" role."""
    if guild is None or not isinstance(user, discord.Member):
        return False
    role = discord.utils.get(guild.roles, name=NO_CONTEXT_COMMANDS_ROLE)
    return role is not None and role in user.roles


def rejection_reason(message: discord.Message, empty_text: str) -> str | None:
    """Why *message* can't be answered, or ``None`` if it can."""
    if message.author.bot or message.webhook_id is not None:
        return "Bots know everything already!"
    if not message.content or not message.content.strip():
        return empty_text
    return None


class LMGTFY(commands.Cog, name="LMGTFY"):
    """Snarky search-link context menus."""

    def __init__(self, bot: MattBot) -> None:
        self.bot = bot
        self.menus = [
            app_commands.ContextMenu(name="LMGTFY", callback=self.lmgtfy),
            app_commands.ContextMenu(name="LMGPTTFY", callback=self.lmgpttfy),
        ]
        for menu in self.menus:
            menu.guild_only = True

    async def cog_load(self) -> None:
        for menu in self.menus:
            self.bot.tree.add_command(menu)

    async def cog_unload(self) -> None:
        for menu in self.menus:
            self.bot.tree.remove_command(menu.name, type=menu.type)

    async def _answer(
        self,
        interaction: discord.Interaction,
        message: discord.Message,
        build_url: Callable[[str], str],
        empty_text: str,
    ) -> None:
        if is_prohibited(interaction.user, interaction.guild):
            await interaction.response.send_message(
                "You are prohibited from using this command!", ephemeral=True,
            )
            return

        reason = rejection_reason(message, empty_text)
        if reason is not None:
            await interaction.response.send_message(reason, ephemeral=True)
            return

        await interaction.response.send_message(
            f"{message.author.mention}, this might help:\n<{build_url(message.content)}>",
            allowed_mentions=discord.AllowedMentions(
                everyone=False, roles=False, users=[message.author],
            ),
        )

    async def lmgtfy(self, interaction: discord.Interaction, message: discord.Message) -> None:
        await self._answer(interaction, message, build_lmgtfy_url, "There is nothing to Google!")

    async def lmgpttfy(self, interaction: discord.Interaction, message: discord.Message) -> None:
        await self._answer(
            interaction, message, build_lmgpttfy_url, "There is nothing to ask ChatGPT!",
        )


async def setup(bot: MattBot) -> None:
    await bot.add_cog(LMGTFY(bot))

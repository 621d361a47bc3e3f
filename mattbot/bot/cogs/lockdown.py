"""
mattbot.bot.cogs.lockdown — /lockdown toggle
==============================================

Moderator command (default permission ``ban_members``) that flips the
server between normal operation and lockdown.  Only available in the
guilds listed in ``lockdown_guild_ids`` (all guilds when the list is
empty).  See :mod:`mattbot.services.lockdown_service` for the steps.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from mattbot.services.lockdown_service import LockdownLevel, apply_lockdown

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)


def in_lockdown_guild():
    """Check that the command runs in a guild allowed to use lockdown."""
    async def predicate(interaction: discord.Interaction) -> bool:
        bot: MattBot = interaction.client  # type: ignore[assignment]
        allowed = bot.cfg.lockdown_guild_ids
        return interaction.guild_id is not None and (
            not allowed or interaction.guild_id in allowed
        )
    return app_commands.check(predicate)


@app_commands.guild_only()
@app_commands.default_permissions(ban_members=True)
class Lockdown(
    commands.GroupCog,
    group_name="lockdown",
    group_description="Set the server lockdown status",
):
    """Server lockdown switch."""

    def __init__(self, bot: MattBot) -> None:
        self.bot = bot

    @app_commands.command(name="toggle", description="Toggle the server lockdown status")
    @app_commands.describe(setting="The setting of lockdown mode")
    @app_commands.choices(setting=[
        app_commands.Choice(name=level.name, value=level.value) for level in LockdownLevel
    ])
    @in_lockdown_guild()
    async def toggle(self, interaction: discord.Interaction, setting: int) -> None:
        guild = interaction.guild
        assert guild is not None  # guild_only
        level = LockdownLevel(setting)
        logger.info(
            "Lockdown %s requested by %s (%d) in guild %d",
            level.name, interaction.user.name, interaction.user.id, guild.id,
        )

        async def report(text: str) -> None:
            if interaction.response.is_done():
                await interaction.edit_original_response(content=text)
            else:
                await interaction.response.send_message(text)

        await apply_lockdown(guild, level, self.bot.cfg, report)

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            await interaction.response.send_message(
                "\U0001f512 Lockdown isn't available in this server.",
                ephemeral=True,
            )
        else:
            raise error


async def setup(bot: MattBot) -> None:
    await bot.add_cog(Lockdown(bot))

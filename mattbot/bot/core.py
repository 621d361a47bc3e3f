"""
mattbot.bot.core — Bot Instance & Cog Loader
=============================================

Defines :class:`MattBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``) and the MattBucks ledger
   (``bot.ledger``) so every Cog can reach them via ``self.bot``.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by the ``DEV_GUILD_ID`` env var).
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands

from mattbot.config import MattbotConfig
from mattbot.engine.ledger import Ledger
from mattbot.storage import run_io

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "mattbot.bot.cogs.mattbucks",
    "mattbot.bot.cogs.tasks",
    "mattbot.bot.cogs.crowd_mute",
    "mattbot.bot.cogs.message_reports",
    "mattbot.bot.cogs.lockdown",
    "mattbot.bot.cogs.lmgtfy",
]


class MattBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`MattbotConfig` from ``config.yaml``.
    ledger:
        The loaded MattBucks :class:`Ledger`.
    """

    def __init__(self, cfg: MattbotConfig, ledger: Ledger) -> None:
        # Privileged intents (must enable in Developer Portal):
        #   MESSAGE_CONTENT: quoting voted-on messages in the mod log
        #   GUILD_MEMBERS:   booster enumeration, exempt-role lookups
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.presences = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description="Community moderation and MattBucks",
        )

        self.cfg = cfg
        self.ledger = ledger

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions; one broken Cog shouldn't stop the bot."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    async def close(self) -> None:
        """Graceful shutdown — flush the ledger one last time."""
        logger.info("Bot shutting down…")
        await run_io(self.ledger.persist)
        await super().close()

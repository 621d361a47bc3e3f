"""
mattbot.bot.cogs.tasks — Periodic Background Tasks
====================================================

Scheduled jobs that run on ``discord.ext.tasks`` loops:

- **Booster rewards** — every ``booster_reward_interval_hours`` (default
  6), credits ``booster_reward_amount`` MattBucks to every member boosting
  a configured guild.

A failed sweep is logged and the loop keeps running; commands stay
available throughout because the ledger lock is only taken per user.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from mattbot.services.economy_service import grant_booster_rewards

if TYPE_CHECKING:
    from mattbot.bot.core import MattBot

logger = logging.getLogger(__name__)


class PeriodicTasks(commands.Cog):
    """Cog for scheduled background jobs."""

    def __init__(self, bot: MattBot) -> None:
        self.bot = bot

    async def cog_load(self) -> None:
        """Start task loops when the cog is loaded."""
        cfg = self.bot.cfg
        if not cfg.booster_reward_guilds:
            logger.info("No booster reward guilds configured — reward loop not started.")
            return
        self.booster_reward_loop.change_interval(hours=cfg.booster_reward_interval_hours)
        self.booster_reward_loop.start()
        logger.info(
            "Booster reward loop started for guilds %s every %sh",
            ", ".join(str(g) for g in cfg.booster_reward_guild_ids),
            cfg.booster_reward_interval_hours,
        )

    async def cog_unload(self) -> None:
        """Cancel task loops on unload."""
        self.booster_reward_loop.cancel()

    # -------------------------------------------------------------------
    # Booster rewards
    # -------------------------------------------------------------------
    @tasks.loop(hours=6)
    async def booster_reward_loop(self):
        """Grant MattBucks to current server boosters."""
        logger.info("Checking for booster rewards…")
        try:
            await grant_booster_rewards(self.bot)
        except Exception:
            logger.exception("Booster reward sweep failed", extra={"task": "booster_rewards"})

    @booster_reward_loop.before_loop
    async def _wait_booster_rewards(self):
        await self.bot.wait_until_ready()


async def setup(bot: MattBot) -> None:
    await bot.add_cog(PeriodicTasks(bot))

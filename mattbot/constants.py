"""
mattbot.constants — Shared Constants & Helpers
================================================

Single source of truth for presentation constants and exempt-role names.
Import from here instead of duplicating in cogs and services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import discord

# ---------------------------------------------------------------------------
# Status emoji (used in command replies and the mod log)
# ---------------------------------------------------------------------------
SUCCESS = "\u2705"          # ✅
WARNING = "\u26a0\ufe0f"    # ⚠️
ERROR = "\u274c"            # ❌
INFO = "\u2139\ufe0f"       # ℹ️
LOADING = "\u23f3"          # ⏳
LOCK = "\U0001f512"         # 🔒
UNLOCK = "\U0001f513"       # 🔓

ERROR_MESSAGE = "Something went wrong. Check the bot's permissions and role order."

# ---------------------------------------------------------------------------
# MattBucks presentation
# ---------------------------------------------------------------------------
MATTBUCKS_EMOJI = "<:MattBucks:1091275681024970853>"
NITRO_EMOJI = "<:nitro:1091272926881390634>"
PING_EMOJI = "<:ping:1091272927737036953>"
SWORD = "\u2694\ufe0f"      # ⚔️
WATER = "\U0001f4a7"        # 💧

RICHEST_LIMIT = 10

# ---------------------------------------------------------------------------
# Role names that opt members out of community tools
# ---------------------------------------------------------------------------
NO_CROWDMUTE_ROLE = "No Crowdmute"
NO_REPORTS_ROLE = "No Reports"
NO_CONTEXT_COMMANDS_ROLE = "No Context Commands"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------
def format_full_user(user: discord.abc.User) -> str:
    """Render a user as ``**name** (ID:123)`` for log lines."""
    return f"**{user.name}** (ID:{user.id})"

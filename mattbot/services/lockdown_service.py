"""
mattbot.services.lockdown_service — Server Lockdown Steps
===========================================================

Locking a server down (for raids or incidents) means:

1. Hide every channel from @everyone.
2. Dehoist the configured display roles, so the member list stops
   advertising helpers and staff.
3. Remove thread permissions from @everyone and make helper roles
   unmentionable.

Unlocking runs the same steps in reverse polarity.  ``STRICT`` is
reserved for a harsher mode and currently behaves like ``NORMAL``.

Progress is reported through an async callback after every step, so the
``/lockdown`` command can edit its reply as it goes.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

import discord

from mattbot.config import MattbotConfig
from mattbot.constants import ERROR, ERROR_MESSAGE, LOADING, LOCK, SUCCESS, UNLOCK

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], Awaitable[None]]

AUDIT_REASON = "Server lockdown toggled"


class LockdownLevel(enum.IntEnum):
    OFF = 0
    NORMAL = 1
    STRICT = 2

    @property
    def locks(self) -> bool:
        return self is not LockdownLevel.OFF


@dataclass(frozen=True, slots=True)
class LockdownStep:
    pending: str
    done: str
    run: Callable[[], Awaitable[None]]


def _resolve_roles(guild: discord.Guild, role_ids: Iterable[int]) -> list[discord.Role]:
    roles = []
    for role_id in role_ids:
        role = guild.get_role(role_id)
        if role is None:
            logger.warning("Lockdown role %d not found in guild %d — skipping", role_id, guild.id)
            continue
        roles.append(role)
    return roles


async def _set_everyone_permissions(guild: discord.Guild, **flags: bool) -> None:
    everyone = guild.default_role
    perms = everyone.permissions
    perms.update(**flags)
    await everyone.edit(permissions=perms, reason=AUDIT_REASON)


async def _set_role_flag(roles: Iterable[discord.Role], **flags: bool) -> None:
    for role in roles:
        await role.edit(reason=AUDIT_REASON, **flags)


def build_steps(guild: discord.Guild, lock: bool, cfg: MattbotConfig) -> list[LockdownStep]:
    """The ordered steps to lock (``lock=True``) or unlock *guild*."""
    allowed = not lock
    hoisted = _resolve_roles(guild, cfg.lockdown_hoisted_role_ids)
    mentionable = _resolve_roles(guild, cfg.lockdown_mentionable_role_ids)

    async def channels() -> None:
        await _set_everyone_permissions(guild, view_channel=allowed)

    async def hoist() -> None:
        await _set_role_flag(hoisted, hoist=allowed)

    async def defaults() -> None:
        await _set_everyone_permissions(
            guild,
            send_messages_in_threads=allowed,
            create_public_threads=allowed,
            create_private_threads=allowed,
        )
        await _set_role_flag(mentionable, mentionable=allowed)

    if lock:
        return [
            LockdownStep("Hiding channels", "Channels hidden!", channels),
            LockdownStep("Dehoisting roles", "Roles dehoisted!", hoist),
            LockdownStep("Removing default permissions", "Default permissions removed!", defaults),
        ]
    return [
        LockdownStep("Unhiding channels", "Channels unhidden!", channels),
        LockdownStep("Hoisting roles", "Roles hoisted!", hoist),
        LockdownStep("Restoring default permissions", "Default permissions restored!", defaults),
    ]


async def apply_lockdown(
    guild: discord.Guild,
    level: LockdownLevel,
    cfg: MattbotConfig,
    report: ProgressCallback,
) -> bool:
    """Run every lockdown step for *level*, reporting progress after each.

    Returns ``False`` (after reporting the error) if Discord rejects a step;
    steps already applied are left in place.
    """
    lock = level.locks
    done_lines = [f"{SUCCESS} {'Enabling' if lock else 'Disabling'} lockdown mode!"]

    for step in build_steps(guild, lock, cfg):
        await report("\n".join([*done_lines, f"{LOADING} {step.pending}..."]))
        try:
            await step.run()
        except discord.HTTPException:
            logger.exception("Lockdown step '%s' failed in guild %d", step.pending, guild.id)
            await report("\n".join([*done_lines, f"{ERROR} {ERROR_MESSAGE}"]))
            return False
        done_lines.append(f"{SUCCESS} {step.done}")

    final = f"{LOCK} Lockdown mode enabled!" if lock else f"{UNLOCK} Lockdown mode disabled!"
    await report("\n".join(done_lines) + f"\n\n{final}")
    logger.info("Lockdown set to %s in guild %d", level.name, guild.id)
    return True

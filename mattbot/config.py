"""
mattbot.config — YAML Configuration Loader
===========================================

Reads ``config.yaml`` for every non-secret setting: economy tuning,
moderation thresholds, guild and role identifiers.  Secrets (the bot
token) stay in ``.env``.

Usage::

    from mattbot.config import load_config

    cfg = load_config()                   # reads ./config.yaml by default
    print(cfg.booster_reward_amount)      # 1
    print(cfg.crowd_mute_threshold)       # 5
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_CROWD_MUTE_EMOJI = "<:1984:1025604468559061042>"
DEFAULT_MESSAGE_REPORT_EMOJI = "\U0001f5d1\ufe0f"  # 🗑️


@dataclass(frozen=True, slots=True)
class BoosterGuild:
    """A guild whose Nitro boosters earn MattBucks."""

    id: int
    name: str
    invite: str | None = None


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MattbotConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Discord
    bot_prefix: str

    # Storage / logging
    ledger_path: str = "mattbucks_data.json"
    log_channel_name: str = "bot_log"

    # Economy
    purchase_notify_user_id: int = 0  # 0 disables the purchase DM
    booster_reward_amount: int = 1
    booster_reward_interval_hours: float = 6.0
    booster_reward_guilds: tuple[BoosterGuild, ...] = field(default_factory=tuple)

    # Crowd mute (threshold 0 disables)
    crowd_mute_threshold: int = 0
    crowd_mute_duration: int = 0  # minutes
    crowd_mute_emoji: str = DEFAULT_CROWD_MUTE_EMOJI
    crowd_mute_guild_ids: tuple[int, ...] = field(default_factory=tuple)

    # Message reports (threshold 0 disables)
    message_report_threshold: int = 0
    message_report_duration: int = 0  # hours
    message_report_emoji: str = DEFAULT_MESSAGE_REPORT_EMOJI

    # Lockdown
    lockdown_guild_ids: tuple[int, ...] = field(default_factory=tuple)
    lockdown_hoisted_role_ids: tuple[int, ...] = field(default_factory=tuple)
    lockdown_mentionable_role_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def booster_reward_guild_ids(self) -> tuple[int, ...]:
        return tuple(g.id for g in self.booster_reward_guilds)


def _id_list(raw: dict, key: str) -> tuple[int, ...]:
    return tuple(int(v) for v in raw.get(key) or ())


def _booster_guilds(raw: dict) -> tuple[BoosterGuild, ...]:
    guilds = []
    for entry in raw.get("booster_reward_guilds") or ():
        guild_id = int(entry["id"])
        if guild_id == 0:
            continue
        guilds.append(BoosterGuild(
            id=guild_id,
            name=str(entry.get("name") or guild_id),
            invite=entry.get("invite"),
        ))
    return tuple(guilds)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> MattbotConfig:
    """Read *path* and return a :class:`MattbotConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return MattbotConfig(
        bot_prefix=raw["bot_prefix"],
        ledger_path=str(raw.get("ledger_path") or "mattbucks_data.json"),
        log_channel_name=str(raw.get("log_channel_name") or "bot_log"),
        purchase_notify_user_id=int(raw.get("purchase_notify_user_id") or 0),
        booster_reward_amount=int(raw.get("booster_reward_amount", 1)),
        booster_reward_interval_hours=float(raw.get("booster_reward_interval_hours", 6)),
        booster_reward_guilds=_booster_guilds(raw),
        crowd_mute_threshold=int(raw.get("crowd_mute_threshold") or 0),
        crowd_mute_duration=int(raw.get("crowd_mute_duration") or 0),
        crowd_mute_emoji=str(raw.get("crowd_mute_emoji") or DEFAULT_CROWD_MUTE_EMOJI),
        crowd_mute_guild_ids=_id_list(raw, "crowd_mute_guild_ids"),
        message_report_threshold=int(raw.get("message_report_threshold") or 0),
        message_report_duration=int(raw.get("message_report_duration") or 0),
        message_report_emoji=str(
            raw.get("message_report_emoji") or DEFAULT_MESSAGE_REPORT_EMOJI
        ),
        lockdown_guild_ids=_id_list(raw, "lockdown_guild_ids"),
        lockdown_hoisted_role_ids=_id_list(raw, "lockdown_hoisted_role_ids"),
        lockdown_mentionable_role_ids=_id_list(raw, "lockdown_mentionable_role_ids"),
    )

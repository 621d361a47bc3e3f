"""
mattbot.engine.votes — Community Vote Rules
============================================

Pure decision logic shared by crowd mutes and message reports.  Nothing
here talks to Discord; :mod:`mattbot.services.community_vote` turns
gateway objects into :class:`Voter` rows and calls these functions.

A vote counts when the reacting user:

* is not a bot,
* is not the author of the message,
* does not hold the opt-out role ("No Crowdmute" / "No Reports").
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import discord

__all__ = [
    "Voter",
    "VoteTally",
    "tally_votes",
    "is_within_window",
    "emoji_matches",
    "parse_emoji",
]

_VARIATION_SELECTOR = "\ufe0f"


@dataclass(frozen=True, slots=True)
class Voter:
    """A user who added the vote reaction, reduced to what the rules need."""

    id: int
    label: str
    bot: bool = False
    role_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class VoteTally:
    count: int
    voters: tuple[Voter, ...]

    def reached(self, threshold: int) -> bool:
        return threshold > 0 and self.count >= threshold

    @property
    def voter_list(self) -> str:
        return ", ".join(v.label for v in self.voters)


def tally_votes(
    voters: Iterable[Voter],
    author_id: int,
    exempt_role_id: int | None = None,
) -> VoteTally:
    """Count the valid votes among *voters* (duplicates are counted once)."""
    seen: set[int] = set()
    counted: list[Voter] = []
    for voter in voters:
        if voter.id in seen:
            continue
        seen.add(voter.id)
        if voter.bot or voter.id == author_id:
            continue
        if exempt_role_id is not None and exempt_role_id in voter.role_ids:
            continue
        counted.append(voter)
    return VoteTally(count=len(counted), voters=tuple(counted))


def is_within_window(
    created_at: datetime,
    window: timedelta,
    now: datetime | None = None,
) -> bool:
    """True if a message created at *created_at* is younger than *window*.

    A zero or negative window means no message qualifies.
    """
    now = now or datetime.now(UTC)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return now - created_at < window


def parse_emoji(value: str) -> discord.PartialEmoji:
    """Parse a configured emoji (``<:name:id>`` or a unicode character)."""
    return discord.PartialEmoji.from_str(value.strip())


def emoji_matches(emoji: discord.PartialEmoji, target: discord.PartialEmoji) -> bool:
    """Compare a reaction emoji with the configured vote emoji.

    Custom emoji match on id.  Unicode emoji match on name, ignoring the
    U+FE0F variation selector that clients add or drop inconsistently.
    """
    if target.id is not None or emoji.id is not None:
        return emoji.id == target.id
    return (emoji.name or "").replace(_VARIATION_SELECTOR, "") == (
        target.name or ""
    ).replace(_VARIATION_SELECTOR, "")

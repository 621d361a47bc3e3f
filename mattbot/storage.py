"""
mattbot.storage — Ledger Snapshot File & Async Helper
======================================================

**Why this file exists:**
The MattBucks ledger lives in memory and is mirrored to a single JSON
document.  This module owns that document: its schema (a pydantic model),
reading it, and writing it atomically.

The file keeps the key names used by earlier versions of the bot, so old
``mattbucks_data.json`` files load unchanged::

    {
      "UserMattBucks": {"349007194768801792": 120},
      "LastBoosterRewardTime": {"349007194768801792": "2026-10-19T12:00:00Z"}
    }

It also provides :func:`run_io`, the bridge from Discord's async world
to the ledger's synchronous, lock-protected methods.

Usage::

    from mattbot.storage import run_io

    balance = await run_io(bot.ledger.get_balance, user_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import ParamSpec, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class PersistenceError(Exception):
    """The ledger file could not be read or written."""


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
class LedgerSnapshot(BaseModel):
    """On-disk shape of the ledger."""

    model_config = ConfigDict(populate_by_name=True)

    balances: dict[int, int] = Field(default_factory=dict, alias="UserMattBucks")
    last_reward_at: dict[int, datetime] = Field(
        default_factory=dict, alias="LastBoosterRewardTime",
    )

    @field_validator("balances", mode="before")
    @classmethod
    def _null_balances(cls, value):
        return {} if value is None else value

    @field_validator("last_reward_at", mode="before")
    @classmethod
    def _null_rewards(cls, value):
        return {} if value is None else value

    @field_validator("balances")
    @classmethod
    def _clamp_balances(cls, value: dict[int, int]) -> dict[int, int]:
        return {user_id: max(0, amount) for user_id, amount in value.items()}

    @field_validator("last_reward_at")
    @classmethod
    def _assume_utc(cls, value: dict[int, datetime]) -> dict[int, datetime]:
        try:
            return {user_id: as_utc(ts) for user_id, ts in value.items()}
        except OverflowError as exc:
            # pydantic only reports ValueError / AssertionError as validation errors
            raise ValueError(f"timestamp out of range: {exc}") from exc


def as_utc(ts: datetime) -> datetime:
    """Return *ts* as an aware UTC datetime (naive values are taken as UTC)."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


# ---------------------------------------------------------------------------
# Read / write
# ---------------------------------------------------------------------------
def read_snapshot(path: Path) -> LedgerSnapshot:
    """Parse the ledger file at *path*.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    PersistenceError
        If the file can't be read or doesn't match the schema.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as exc:
        raise PersistenceError(f"Cannot read {path}: {exc}") from exc

    if not text.strip():
        raise PersistenceError(f"{path} is empty")

    try:
        return LedgerSnapshot.model_validate_json(text)
    except ValidationError as exc:
        raise PersistenceError(f"{path} is malformed: {exc}") from exc


def write_snapshot(path: Path, snapshot: LedgerSnapshot) -> None:
    """Write *snapshot* to *path*, replacing the previous file in one step.

    The JSON is written to a temporary sibling and moved over *path* with
    :func:`os.replace`, so a crash mid-write leaves the old file intact.

    Raises
    ------
    PersistenceError
        On any filesystem error.
    """
    payload = snapshot.model_dump_json(by_alias=True, indent=2)
    directory = path.parent if str(path.parent) else Path(".")
    tmp_name: str | None = None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as fh:
            tmp_name = fh.name
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
        raise PersistenceError(f"Cannot write {path}: {exc}") from exc


def quarantine(path: Path) -> Path | None:
    """Move an unreadable ledger file aside so the next save can't clobber it."""
    target = path.with_name(path.name + ".corrupt")
    try:
        os.replace(path, target)
    except OSError:
        logger.exception("Could not move corrupt ledger file %s aside", path)
        return None
    return target


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_io(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** ledger call on a background thread.

    Ledger methods take a lock and write the JSON file, so cogs never call
    them directly on the event loop::

        result = await run_io(bot.ledger.purchase, user_id, "nitro")

    Under the hood this is :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor``.
    """
    return await asyncio.to_thread(func, *args, **kwargs)

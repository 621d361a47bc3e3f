"""
mattbot.engine.ledger — MattBucks Balance Ledger
=================================================

**Why this file exists:**
Every MattBucks balance and every booster-reward timestamp lives in one
:class:`Ledger`.  It is built once at startup, attached to the bot as
``bot.ledger`` and shared by every cog and background task.

Guarantees:

* Balances never go below zero; a debit larger than the balance zeroes it.
* A user gets at most one periodic reward per interval.
* A purchase checks and debits in one step, so two concurrent purchases
  can't both spend the same MattBucks.
* Every mutation rewrites the JSON file before the lock is released, so a
  snapshot is never taken mid-mutation.

Locking rule: one ``threading.Lock`` guards both maps.  Public methods
acquire it exactly once; helpers ending in ``_locked`` assume it is held
and never acquire it.  Ledger methods are synchronous; cogs call them
through :func:`mattbot.storage.run_io`.

Persistence failures never escape: a failed save is logged and the
in-memory state stays authoritative until the next successful write.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path

from mattbot.engine.shop import SHOP_ITEMS, PurchaseResult, PurchaseStatus, ShopItem
from mattbot.storage import (
    LedgerSnapshot,
    PersistenceError,
    as_utc,
    quarantine,
    read_snapshot,
    write_snapshot,
)

logger = logging.getLogger(__name__)


class Ledger:
    """Thread-safe MattBucks balances mirrored to a JSON file.

    Parameters
    ----------
    path:
        Location of the ledger file.
    catalog:
        Shop items by code.  Defaults to :data:`SHOP_ITEMS`.
    """

    def __init__(
        self,
        path: str | Path,
        catalog: Mapping[str, ShopItem] = SHOP_ITEMS,
    ) -> None:
        self.path = Path(path)
        self._catalog = catalog
        self._lock = threading.Lock()
        self._balances: dict[int, int] = {}
        self._last_reward_at: dict[int, datetime] = {}

    @classmethod
    def open(cls, path: str | Path, catalog: Mapping[str, ShopItem] = SHOP_ITEMS) -> Ledger:
        """Build a ledger and load its file (the usual startup path)."""
        ledger = cls(path, catalog)
        ledger.load()
        return ledger

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------
    def get_balance(self, user_id: int) -> int:
        """Current balance of *user_id*; unknown users have 0."""
        with self._lock:
            return self._balances.get(user_id, 0)

    def top_balances(self, n: int) -> list[tuple[int, int]]:
        """Up to *n* ``(user_id, balance)`` pairs with a positive balance.

        Sorted by balance, highest first; equal balances are ordered by
        user id ascending so the result is deterministic.
        """
        if n <= 0:
            return []
        with self._lock:
            holders = [(uid, bal) for uid, bal in self._balances.items() if bal > 0]
        holders.sort(key=lambda pair: (-pair[1], pair[0]))
        return holders[:n]

    def balances(self) -> dict[int, int]:
        with self._lock:
            return dict(self._balances)

    def reward_times(self) -> dict[int, datetime]:
        with self._lock:
            return dict(self._last_reward_at)

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------
    def modify_balance(self, user_id: int, delta: int) -> int:
        """Add *delta* (may be negative) to *user_id*'s balance.

        The result is clamped at 0.  Returns the new balance.
        """
        _, new_balance = self.adjust_balance(user_id, delta)
        return new_balance

    def adjust_balance(self, user_id: int, delta: int) -> tuple[int, int]:
        """Like :meth:`modify_balance`, but return ``(old, new)`` balances.

        Both values come from the same lock acquisition, so a concurrent
        credit can't land between them.
        """
        with self._lock:
            old_balance = self._balances.get(user_id, 0)
            new_balance = self._apply_delta_locked(user_id, delta)
            self._persist_locked()
        return old_balance, new_balance

    def grant_periodic_reward(
        self,
        user_id: int,
        amount: int,
        interval: timedelta,
        now: datetime | None = None,
    ) -> bool:
        """Credit *amount* unless *user_id* was rewarded less than *interval* ago.

        Returns ``True`` when the reward was granted.  Calling this again
        within the same interval is a no-op, so the sweep can be retried
        safely.
        """
        now = as_utc(now) if now is not None else datetime.now(UTC)
        with self._lock:
            last = self._last_reward_at.get(user_id)
            if last is not None and now - last < interval:
                return False
            self._apply_delta_locked(user_id, amount)
            self._last_reward_at[user_id] = now
            self._persist_locked()
        return True

    def purchase(self, user_id: int, item_code: str) -> PurchaseResult:
        """Buy *item_code* for *user_id* if the balance covers its price.

        The balance check and the debit happen under one lock acquisition.
        """
        item = self._catalog.get(item_code) if isinstance(item_code, str) else None
        with self._lock:
            balance = self._balances.get(user_id, 0)
            if item is None:
                return PurchaseResult(PurchaseStatus.UNKNOWN_ITEM, balance)
            if balance < item.price:
                return PurchaseResult(PurchaseStatus.INSUFFICIENT_FUNDS, balance, item)
            balance = self._apply_delta_locked(user_id, -item.price)
            self._persist_locked()
        logger.info("User %d purchased %s for %d", user_id, item.code, item.price)
        return PurchaseResult(PurchaseStatus.OK, balance, item)

    def _apply_delta_locked(self, user_id: int, delta: int) -> int:
        balance = max(0, self._balances.get(user_id, 0) + delta)
        self._balances[user_id] = balance
        return balance

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------
    def load(self) -> None:
        """Replace in-memory state with the contents of the ledger file.

        A missing, unreadable or malformed file leaves the ledger empty and
        logs a warning instead of failing startup.  A malformed file is
        renamed to ``<name>.corrupt`` first.
        """
        with self._lock:
            try:
                snapshot = read_snapshot(self.path)
            except FileNotFoundError:
                logger.warning(
                    "Ledger file %s not found — starting with an empty ledger", self.path,
                )
                snapshot = LedgerSnapshot()
            except PersistenceError as exc:
                moved = quarantine(self.path) if self.path.exists() else None
                logger.warning(
                    "Ledger file unusable (%s) — starting with an empty ledger%s",
                    exc,
                    f"; original kept at {moved}" if moved else "",
                )
                snapshot = LedgerSnapshot()

            self._balances = dict(snapshot.balances)
            self._last_reward_at = dict(snapshot.last_reward_at)
            logger.info(
                "Ledger loaded: %d balances, %d reward records",
                len(self._balances), len(self._last_reward_at),
            )

    def persist(self) -> bool:
        """Write the full ledger to disk.  Returns ``False`` if the write failed."""
        with self._lock:
            return self._persist_locked()

    def _persist_locked(self) -> bool:
        snapshot = LedgerSnapshot(
            balances=dict(self._balances),
            last_reward_at=dict(self._last_reward_at),
        )
        try:
            write_snapshot(self.path, snapshot)
        except PersistenceError:
            logger.exception("Failed to save ledger to %s", self.path)
            return False
        return True

"""
mattbot.engine.shop — MattBucks Shop Catalog
=============================================

The redeemables are fixed at build time.  Codes are what users type (or
pick) in ``/matt purchase``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType

from mattbot.constants import NITRO_EMOJI, PING_EMOJI, SWORD, WATER

__all__ = ["ShopItem", "SHOP_ITEMS", "PurchaseStatus", "PurchaseResult"]


@dataclass(frozen=True, slots=True)
class ShopItem:
    """One redeemable in the shop."""

    code: str
    name: str
    price: int
    description: str
    emoji: str

    @property
    def label(self) -> str:
        """Choice label shown in the slash-command picker."""
        return f"{self.name} ({self.price} MB)"


_CATALOG = (
    ShopItem(
        code="1v1",
        name="1v1 Matt",
        price=100,
        description="1v1 matt in Valorant, League, TFT, Minecraft, Tetris or Chess",
        emoji=SWORD,
    ),
    ShopItem(
        code="nitro",
        name="1 Month Discord Nitro",
        price=1500,
        description="One month of Discord Nitro, delivered via Discord",
        emoji=NITRO_EMOJI,
    ),
    ShopItem(
        code="water",
        name="1 Bottle of AFA Water",
        price=50000,
        description="One bottle of AFA water, shipped directly to you",
        emoji=WATER,
    ),
    ShopItem(
        code="ping",
        name="Custom @everyone",
        price=100000,
        description="Customized @everyone message in #announcements",
        emoji=PING_EMOJI,
    ),
)

SHOP_ITEMS: MappingProxyType[str, ShopItem] = MappingProxyType(
    {item.code: item for item in _CATALOG}
)


class PurchaseStatus(enum.Enum):
    OK = "ok"
    UNKNOWN_ITEM = "unknown_item"
    INSUFFICIENT_FUNDS = "insufficient_funds"


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    """Outcome of :meth:`Ledger.purchase`.

    ``balance`` is the buyer's balance after the attempt (unchanged on
    failure).  ``item`` is ``None`` only for ``UNKNOWN_ITEM``.
    """

    status: PurchaseStatus
    balance: int
    item: ShopItem | None = None

    @property
    def ok(self) -> bool:
        return self.status is PurchaseStatus.OK

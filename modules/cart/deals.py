"""
Cart Module - Bundle Deals
============================
Static buy-N-get-M-free tiers and the minimum bundle size.
"""

from dataclasses import dataclass
from typing import Optional, Iterable, Dict, Any


@dataclass(frozen=True)
class BundleDeal:
    """Buy `buy` posters, get `get` free: `total` posters in the bundle."""
    buy: int
    get: int
    total: int

    def to_dict(self) -> Dict[str, int]:
        return {"buy": self.buy, "get": self.get, "total": self.total}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["BundleDeal"]:
        if not data:
            return None
        return cls(buy=int(data["buy"]), get=int(data["get"]), total=int(data["total"]))


BUNDLE_DEALS = (
    BundleDeal(buy=15, get=8, total=23),
    BundleDeal(buy=12, get=6, total=18),
    BundleDeal(buy=10, get=4, total=14),
)

MIN_ORDER_QUANTITY = 6


def best_deal(
    total_units: int,
    deals: Iterable[BundleDeal] = BUNDLE_DEALS,
    min_quantity: int = MIN_ORDER_QUANTITY,
) -> Optional[BundleDeal]:
    """Highest-threshold deal the unit count qualifies for (not cumulative)."""
    if total_units < min_quantity:
        return None
    for deal in sorted(deals, key=lambda d: d.buy, reverse=True):
        if deal.buy <= total_units:
            return deal
    return None


def next_deal(
    selection_count: int,
    deals: Iterable[BundleDeal] = BUNDLE_DEALS,
    min_quantity: int = MIN_ORDER_QUANTITY,
) -> BundleDeal:
    """
    The tier the shopper is working towards.
    Below the minimum: a zero-gift pseudo deal at the minimum.
    All tiers met: the biggest tier.
    """
    ordered = sorted(deals, key=lambda d: d.buy)
    if selection_count < min_quantity:
        return BundleDeal(buy=min_quantity, get=0, total=min_quantity)
    for deal in ordered:
        if selection_count < deal.buy:
            return deal
    return ordered[-1]


def deals_payload() -> Dict[str, Any]:
    return {
        "deals": [d.to_dict() for d in sorted(BUNDLE_DEALS, key=lambda d: d.buy)],
        "min_order_quantity": MIN_ORDER_QUANTITY,
    }

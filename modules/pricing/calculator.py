"""
Pricing Module - Calculator
=============================
Pure bundle pricing: unit prices, free-unit allocation, cart totals and
the final payable amount. No database access here.

Allocation in short:
  1. count units (sum of quantities)
  2. below MIN_ORDER_QUANTITY -> no deal, everything paid
  3. pick the highest-`buy` deal the count reaches
  4. expand items into units, cheapest first
  5. the first `deal.get` units make their items free
"""

import enum
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from modules.catalog.options import FrameOption, poster_price
from modules.cart.bundle import CartItem, CartBundle, ProductRef
from modules.cart.deals import BundleDeal, BUNDLE_DEALS, MIN_ORDER_QUANTITY, best_deal

ZERO = Decimal("0")


class FreeUnitPolicy(str, enum.Enum):
    WHOLE_ITEM = "whole_item"     # chosen item is free for its whole quantity
    SPLIT_UNITS = "split_units"   # exactly deal.get units are free

    @classmethod
    def parse(cls, value) -> "FreeUnitPolicy":
        try:
            return cls(value)
        except ValueError:
            return cls.WHOLE_ITEM


# ==========================================
# Item Pricing
# ==========================================

def unit_price(poster_size, frame: Optional[FrameOption] = None) -> Decimal:
    """Poster base price plus the frame add-on. Unknown sizes price at 0."""
    return poster_price(poster_size) + (frame.price if frame else ZERO)


def build_item(
    bundle_id: str,
    product,
    index: int,
    poster_size,
    frame: Optional[FrameOption] = None,
    quantity: int = 1,
) -> CartItem:
    product = ProductRef.coerce(product)
    size = getattr(poster_size, "value", poster_size)
    return CartItem(
        id=f"{bundle_id}-item-{product.id}-{index}",
        product=product,
        quantity=quantity,
        poster_size=size,
        frame=frame,
        price=unit_price(size, frame),
        is_free=False,
    )


# ==========================================
# Bundle Allocator
# ==========================================

@dataclass
class BundleAllocation:
    items: List[CartItem]
    subtotal: Decimal
    total: Decimal
    discount: Decimal
    applied_deal: Optional[BundleDeal]
    free_units: int = 0


def allocate_bundle(
    items: Sequence[CartItem],
    deals: Iterable[BundleDeal] = BUNDLE_DEALS,
    min_quantity: int = MIN_ORDER_QUANTITY,
    policy: FreeUnitPolicy = FreeUnitPolicy.WHOLE_ITEM,
) -> BundleAllocation:
    """
    Decide which items are free and recompute the bundle's money.
    Returns fresh item copies; the input items are left untouched, so calling
    this twice on the same items yields the same result.
    """
    fresh = [replace(item, is_free=False) for item in items]
    total_units = sum(item.quantity for item in fresh)

    deal = best_deal(total_units, deals, min_quantity)
    free_count = deal.get if deal else 0

    if free_count > 0:
        # One entry per unit, pointing at its source item. sorted() is stable,
        # so equal prices keep flattening order.
        units = [idx for idx, item in enumerate(fresh) for _ in range(item.quantity)]
        units.sort(key=lambda idx: fresh[idx].price)
        chosen = units[:free_count]

        if policy == FreeUnitPolicy.SPLIT_UNITS:
            fresh = _split_free_units(fresh, chosen)
        else:
            for idx in chosen:
                fresh[idx].is_free = True

    subtotal = sum((item.line_total for item in fresh), ZERO)
    total = sum((item.line_total for item in fresh if not item.is_free), ZERO)
    free_units = sum(item.quantity for item in fresh if item.is_free)

    return BundleAllocation(
        items=fresh,
        subtotal=subtotal,
        total=total,
        discount=subtotal - total,
        applied_deal=deal,
        free_units=free_units,
    )


def _split_free_units(items: List[CartItem], chosen: List[int]) -> List[CartItem]:
    free_per_item = {}
    for idx in chosen:
        free_per_item[idx] = free_per_item.get(idx, 0) + 1

    result: List[CartItem] = []
    for idx, item in enumerate(items):
        free_qty = free_per_item.get(idx, 0)
        if free_qty == 0:
            result.append(item)
        elif free_qty >= item.quantity:
            result.append(replace(item, is_free=True))
        else:
            result.append(replace(item, id=f"{item.id}-free", quantity=free_qty, is_free=True))
            result.append(replace(item, quantity=item.quantity - free_qty, is_free=False))
    return result


def apply_allocation(bundle: CartBundle, allocation: BundleAllocation) -> CartBundle:
    """Copy an allocation's outcome onto a bundle (whole-bundle replace)."""
    bundle.items = allocation.items
    bundle.subtotal = allocation.subtotal
    bundle.total = allocation.total
    bundle.discount = allocation.discount
    bundle.applied_deal = allocation.applied_deal
    return bundle


# ==========================================
# Cross-bundle Totals
# ==========================================

@dataclass
class CartTotals:
    subtotal: Decimal = ZERO
    total: Decimal = ZERO
    total_discount: Decimal = ZERO
    items_count: int = 0
    applied_deals: List[BundleDeal] = field(default_factory=list)


def summarize_bundles(bundles: Iterable[CartBundle]) -> CartTotals:
    totals = CartTotals()
    for bundle in bundles:
        totals.subtotal += bundle.subtotal
        totals.total += bundle.total
        totals.total_discount += bundle.discount
        totals.items_count += bundle.total_units
        if bundle.applied_deal:
            totals.applied_deals.append(bundle.applied_deal)
    return totals


# ==========================================
# Final Total
# ==========================================

def compose_final_total(total, rule_discount, coupon_discount) -> Decimal:
    """finalTotal = max(0, total - ruleDiscount - couponDiscount). No rounding."""
    return max(ZERO, Decimal(total) - Decimal(rule_discount) - Decimal(coupon_discount))

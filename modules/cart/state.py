"""
Cart Module - Cart State & Controller
=======================================
CartState is a serializable value object; CartController owns one
shopper's cart, loading it from a CartStore on init and saving after
every mutation.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Any, List, Optional, Sequence

from common.helpers import now_ms
from modules.catalog.options import FrameOption, find_frame, poster_price
from modules.cart.bundle import CartBundle, CustomItemInput, ProductRef
from modules.cart.deals import BundleDeal, MIN_ORDER_QUANTITY
from modules.pricing.calculator import (
    FreeUnitPolicy, allocate_bundle, apply_allocation, build_item, summarize_bundles,
)

logger = logging.getLogger("evo.cart")


# ==========================================
# Persistence
# ==========================================

class CartStore:
    """Where serialized carts live between requests."""

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, key: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError


class MemoryCartStore(CartStore):
    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        return self._data.get(key)

    def save(self, key: str, data: Dict[str, Any]) -> None:
        self._data[key] = data


# ==========================================
# State
# ==========================================

@dataclass
class CartState:
    bundles: List[CartBundle] = field(default_factory=list)

    @property
    def bundle_count(self) -> int:
        return len(self.bundles)

    @property
    def subtotal(self) -> Decimal:
        return summarize_bundles(self.bundles).subtotal

    @property
    def total(self) -> Decimal:
        return summarize_bundles(self.bundles).total

    @property
    def total_discount(self) -> Decimal:
        return summarize_bundles(self.bundles).total_discount

    @property
    def items_count(self) -> int:
        return summarize_bundles(self.bundles).items_count

    @property
    def applied_deal(self) -> Optional[BundleDeal]:
        """Deal of the first bundle that has one (cart badge)."""
        for bundle in self.bundles:
            if bundle.applied_deal:
                return bundle.applied_deal
        return None

    @property
    def applied_deals(self) -> List[Dict[str, Any]]:
        """One entry per bundle that carries a deal."""
        return [
            {"bundle_id": b.id, "deal": b.applied_deal.to_dict()}
            for b in self.bundles if b.applied_deal
        ]

    @property
    def is_min_order_met(self) -> bool:
        return all(b.total_units >= MIN_ORDER_QUANTITY for b in self.bundles)

    def get_bundle(self, bundle_id: str) -> Optional[CartBundle]:
        for bundle in self.bundles:
            if bundle.id == bundle_id:
                return bundle
        return None

    def to_dict(self) -> Dict[str, Any]:
        totals = summarize_bundles(self.bundles)
        return {
            "bundles": [b.to_dict() for b in self.bundles],
            "bundle_count": self.bundle_count,
            "items_count": totals.items_count,
            "subtotal": str(totals.subtotal),
            "total": str(totals.total),
            "total_discount": str(totals.total_discount),
            "applied_deal": self.applied_deal.to_dict() if self.applied_deal else None,
            "applied_deals": self.applied_deals,
            "is_min_order_met": self.is_min_order_met,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CartState":
        if not data:
            return cls()
        return cls(bundles=[CartBundle.from_dict(b) for b in data.get("bundles", [])])


# ==========================================
# Controller
# ==========================================

class CartController:
    """Session-scoped owner of a CartState."""

    def __init__(
        self,
        store: CartStore,
        key: str,
        policy: FreeUnitPolicy = FreeUnitPolicy.WHOLE_ITEM,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.key = key
        self.policy = policy
        self.clock = clock
        self.state = self._load()

    def _load(self) -> CartState:
        raw = self.store.load(self.key)
        try:
            return CartState.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable cart {self.key}: {e}")
            return CartState()

    def _commit(self) -> None:
        self.store.save(self.key, {"bundles": [b.to_dict() for b in self.state.bundles]})

    def _new_bundle_id(self, prefix: str = "bundle") -> str:
        stamp = self.clock()
        bundle_id = f"{prefix}-{stamp}"
        while self.state.get_bundle(bundle_id):
            stamp += 1
            bundle_id = f"{prefix}-{stamp}"
        return bundle_id

    def _allocate(self, bundle: CartBundle) -> CartBundle:
        return apply_allocation(bundle, allocate_bundle(bundle.items, policy=self.policy))

    # ------------------------------------------
    # Mutations
    # ------------------------------------------

    def add_bundle(
        self,
        products: Sequence,
        poster_size,
        frame: Optional[FrameOption] = None,
        name: Optional[str] = None,
    ) -> CartBundle:
        bundle_id = self._new_bundle_id()
        bundle = CartBundle(
            id=bundle_id,
            name=name or f"Custom Bundle {self.state.bundle_count + 1}",
            items=[
                build_item(bundle_id, product, index, poster_size, frame)
                for index, product in enumerate(products)
            ],
        )
        self._allocate(bundle)
        self.state.bundles.append(bundle)
        self._commit()
        return bundle

    def add_custom_bundle(self, custom_items: Sequence[CustomItemInput]) -> CartBundle:
        bundle_id = self._new_bundle_id("bundle-custom")
        stamp = self.clock()
        items = []
        for index, custom in enumerate(custom_items):
            frame = find_frame(custom.poster_size) if custom.is_framed else None
            product = ProductRef(
                id=f"custom-{stamp}-{index}",
                name=custom.name,
                slug=f"custom-{stamp}-{index}",
                image_url=custom.preview_url,
                is_custom=True,
            )
            items.append(build_item(
                bundle_id, product, index, custom.poster_size, frame,
                quantity=max(1, int(custom.quantity or 1)),
            ))

        bundle = CartBundle(id=bundle_id, name="Custom Designed Bundle", items=items)
        self._allocate(bundle)
        self.state.bundles.append(bundle)
        self._commit()
        return bundle

    def add_curated_bundle(
        self,
        curated,
        products: Sequence,
        poster_size,
        frame: Optional[FrameOption] = None,
    ) -> CartBundle:
        """Studio-curated set: same allocation path, the bundle keeps the curated name."""
        return self.add_bundle(products, poster_size, frame, name=curated.name)

    def update_bundle(
        self,
        bundle_id: str,
        products: Sequence,
        poster_size,
        frame: Optional[FrameOption] = None,
    ) -> Optional[CartBundle]:
        """Replace a bundle's items and re-run allocation. Unknown id: no-op, None."""
        bundle = self.state.get_bundle(bundle_id)
        if not bundle:
            return None
        bundle.items = [
            build_item(bundle_id, product, index, poster_size, frame)
            for index, product in enumerate(products)
        ]
        self._allocate(bundle)
        self._commit()
        return bundle

    def remove_bundle(self, bundle_id: str) -> bool:
        before = self.state.bundle_count
        self.state.bundles = [b for b in self.state.bundles if b.id != bundle_id]
        removed = self.state.bundle_count < before
        if removed:
            self._commit()
        return removed

    def clear(self) -> None:
        self.state.bundles = []
        self._commit()

    def get_bundle(self, bundle_id: str) -> Optional[CartBundle]:
        return self.state.get_bundle(bundle_id)


def poster_size_known(size) -> bool:
    """Upstream validation hook: unit pricing silently prices unknown sizes at 0."""
    return poster_price(size) > 0

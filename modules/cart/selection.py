"""
Cart Module - Product Selection
=================================
Products a shopper ticks while browsing, before committing them as a bundle.
"""

from typing import List, Optional, Dict, Any

from modules.cart.bundle import ProductRef
from modules.cart.deals import BundleDeal, next_deal
from modules.cart.state import CartStore


class Selection:

    def __init__(self, store: Optional[CartStore] = None, key: str = ""):
        self.store = store
        self.key = f"{key}:selection"
        self.items: List[ProductRef] = []
        if store:
            raw = store.load(self.key) or {}
            self.items = [ProductRef.from_dict(p) for p in raw.get("items", [])]

    def _commit(self):
        if self.store:
            self.store.save(self.key, {"items": [p.to_dict() for p in self.items]})

    def toggle(self, product) -> bool:
        """Add or remove a product. Returns True if it is now selected."""
        product = ProductRef.coerce(product)
        if self.is_selected(product.id):
            self.items = [p for p in self.items if p.id != product.id]
            selected = False
        else:
            self.items.append(product)
            selected = True
        self._commit()
        return selected

    def is_selected(self, product_id) -> bool:
        return any(p.id == str(product_id) for p in self.items)

    def clear(self):
        self.items = []
        self._commit()

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def next_deal(self) -> BundleDeal:
        return next_deal(self.count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [p.to_dict() for p in self.items],
            "count": self.count,
            "next_deal": self.next_deal.to_dict(),
        }

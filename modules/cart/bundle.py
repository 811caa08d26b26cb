"""
Cart Module - Bundle Value Objects
====================================
CartItem / CartBundle as plain dataclasses. They live in the shopper's
session (serialized to JSON), not in relational tables.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, List, Dict, Any

from common.helpers import to_decimal
from modules.catalog.options import FrameOption
from modules.cart.deals import BundleDeal


@dataclass
class ProductRef:
    """Snapshot of the catalog product an item points at."""
    id: str
    name: str
    slug: str = ""
    image_url: Optional[str] = None
    is_custom: bool = False

    @classmethod
    def coerce(cls, product) -> "ProductRef":
        """Accept a ProductRef, a catalog Product row, or a dict."""
        if isinstance(product, ProductRef):
            return product
        if isinstance(product, dict):
            return cls.from_dict(product)
        image_urls = getattr(product, "image_urls", None) or []
        return cls(
            id=str(product.id),
            name=product.name,
            slug=getattr(product, "slug", "") or "",
            image_url=image_urls[0] if image_urls else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "image_url": self.image_url,
            "is_custom": self.is_custom,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductRef":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            image_url=data.get("image_url"),
            is_custom=bool(data.get("is_custom", False)),
        )


@dataclass
class CartItem:
    """
    One line of a bundle. `price` is the unit price cached when the item was
    built; changing size or frame means building a new item.
    """
    id: str
    product: ProductRef
    quantity: int
    poster_size: str
    price: Decimal
    frame: Optional[FrameOption] = None
    is_free: bool = False

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "poster_size": self.poster_size,
            "frame": self.frame.to_dict() if self.frame else None,
            "price": str(self.price),
            "is_free": self.is_free,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        return cls(
            id=data["id"],
            product=ProductRef.from_dict(data["product"]),
            quantity=int(data.get("quantity", 1)),
            poster_size=data.get("poster_size", ""),
            price=to_decimal(data.get("price")),
            frame=FrameOption.from_dict(data.get("frame")),
            is_free=bool(data.get("is_free", False)),
        )


@dataclass
class CartBundle:
    id: str
    name: str
    items: List[CartItem] = field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    applied_deal: Optional[BundleDeal] = None

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
            "subtotal": str(self.subtotal),
            "total": str(self.total),
            "discount": str(self.discount),
            "applied_deal": self.applied_deal.to_dict() if self.applied_deal else None,
            "total_units": self.total_units,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartBundle":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            items=[CartItem.from_dict(it) for it in data.get("items", [])],
            subtotal=to_decimal(data.get("subtotal")),
            total=to_decimal(data.get("total")),
            discount=to_decimal(data.get("discount")),
            applied_deal=BundleDeal.from_dict(data.get("applied_deal")),
        )


@dataclass
class CustomItemInput:
    """A user-uploaded design to be printed as a poster."""
    name: str
    preview_url: str
    poster_size: str
    is_framed: bool = False
    quantity: int = 1

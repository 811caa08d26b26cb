"""
Catalog Module - Models
========================
ProductCategory, Product and admin-curated bundles.
"""

import json

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, Text,
    ForeignKey, DateTime,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import money_str


def _json_list(raw) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
        return value if isinstance(value, list) else []
    except (json.JSONDecodeError, TypeError):
        return []


# ==========================================
# 🗂️ Product Category
# ==========================================

class ProductCategory(Base):
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    products = relationship("Product", back_populates="category")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "image_url": self.image_url,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<ProductCategory {self.name}>"


# ==========================================
# 🖼️ Product (poster design)
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)             # display base price (A4)
    category_id = Column(Integer, ForeignKey("product_categories.id", ondelete="SET NULL"), nullable=True)
    images = Column(Text, nullable=False, default="[]")        # JSON list of URLs
    stock = Column(Integer, default=0, nullable=False)
    tags = Column(Text, nullable=True)                          # comma-separated
    is_trending = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("ProductCategory", back_populates="products")

    @property
    def image_urls(self) -> list:
        return _json_list(self.images)

    @image_urls.setter
    def image_urls(self, value: list):
        self.images = json.dumps(list(value or []))

    @property
    def tag_list(self) -> list:
        return [t.strip() for t in (self.tags or "").split(",") if t.strip()]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "price": money_str(self.price),
            "category": self.category.name if self.category else None,
            "category_slug": self.category.slug if self.category else None,
            "images": self.image_urls,
            "stock": self.stock,
            "tags": self.tag_list,
            "is_trending": self.is_trending,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<Product {self.slug}>"


# ==========================================
# 🎁 Curated Bundle
# ==========================================

class CuratedBundle(Base):
    __tablename__ = "curated_bundles"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    product_ids = Column(Text, nullable=False, default="[]")   # JSON list, ordered
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def product_id_list(self) -> list:
        return [int(pid) for pid in _json_list(self.product_ids)]

    @product_id_list.setter
    def product_id_list(self, value: list):
        self.product_ids = json.dumps([int(pid) for pid in (value or [])])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image_url": self.image_url,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "product_ids": self.product_id_list,
        }

    def __repr__(self):
        return f"<CuratedBundle {self.name}>"

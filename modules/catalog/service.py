"""
Catalog Module - Service Layer
================================
Read accessors used by the storefront and cart, plus studio CRUD for
products, categories and curated bundles.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from common.helpers import slugify, to_decimal, safe_int
from modules.catalog.models import Product, ProductCategory, CuratedBundle


def unique_slug(db: Session, model, name: str, exclude_id: Optional[int] = None) -> str:
    """slugify(name), suffixed -2, -3... until free."""
    base = slugify(name)
    slug, n = base, 1
    while True:
        q = db.query(model.id).filter(model.slug == slug)
        if exclude_id:
            q = q.filter(model.id != exclude_id)
        if not q.first():
            return slug
        n += 1
        slug = f"{base}-{n}"


# ==========================================
# Product Service
# ==========================================

class ProductService:

    def list_all(self, db: Session, category_slug: str = None, include_inactive: bool = False) -> List[Product]:
        q = db.query(Product).options(joinedload(Product.category))
        if not include_inactive:
            q = q.filter(Product.is_active == True)
        if category_slug:
            q = q.join(ProductCategory).filter(ProductCategory.slug == category_slug)
        return q.order_by(Product.created_at.desc(), Product.id.desc()).all()

    def list_trending(self, db: Session) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.is_trending == True, Product.is_active == True)
            .order_by(Product.id)
            .all()
        )

    def search(self, db: Session, query: str) -> List[Product]:
        term = (query or "").strip()
        if not term:
            return []
        like = f"%{term}%"
        return (
            db.query(Product)
            .filter(
                Product.is_active == True,
                or_(Product.name.ilike(like), Product.description.ilike(like), Product.tags.ilike(like)),
            )
            .order_by(Product.name)
            .all()
        )

    def get_by_id(self, db: Session, product_id) -> Optional[Product]:
        pid = safe_int(product_id)
        if pid is None:
            return None
        return db.query(Product).filter(Product.id == pid).first()

    def get_by_slug(self, db: Session, slug: str) -> Optional[Product]:
        return db.query(Product).filter(Product.slug == slug).first()

    def get_many(self, db: Session, product_ids: List, active_only: bool = False) -> List[Product]:
        """Products for ids, in input order. Unknown (or, with active_only, hidden) ids are dropped."""
        ids = [pid for pid in (safe_int(p) for p in product_ids) if pid is not None]
        if not ids:
            return []
        q = db.query(Product).filter(Product.id.in_(set(ids)))
        if active_only:
            q = q.filter(Product.is_active == True)
        rows = q.all()
        by_id = {p.id: p for p in rows}
        return [by_id[pid] for pid in ids if pid in by_id]

    def create(self, db: Session, data: dict) -> Product:
        product = Product(
            name=data["name"],
            slug=unique_slug(db, Product, data.get("slug") or data["name"]),
            description=data.get("description") or "",
            price=to_decimal(data.get("price")),
            category_id=data.get("category_id"),
            stock=int(data.get("stock") or 0),
            tags=", ".join(data.get("tags") or []) or None,
            is_trending=bool(data.get("is_trending")),
            is_active=data.get("is_active", True),
        )
        product.image_urls = data.get("images") or []
        db.add(product)
        db.flush()
        return product

    def update(self, db: Session, product_id: int, data: dict) -> Optional[Product]:
        p = self.get_by_id(db, product_id)
        if not p:
            return None

        if "name" in data and data["name"] != p.name:
            p.name = data["name"]
            p.slug = unique_slug(db, Product, data["name"], exclude_id=p.id)
        for key in ["description", "category_id", "is_trending", "is_active"]:
            if key in data and data[key] is not None:
                setattr(p, key, data[key])
        if data.get("price") is not None:
            p.price = to_decimal(data["price"])
        if data.get("stock") is not None:
            p.stock = int(data["stock"])
        if "tags" in data:
            p.tags = ", ".join(data["tags"] or []) or None
        if "images" in data:
            p.image_urls = data["images"] or []

        db.flush()
        return p

    def delete(self, db: Session, product_id: int) -> bool:
        p = self.get_by_id(db, product_id)
        if not p:
            return False
        db.delete(p)
        db.flush()
        return True

    def set_trending(self, db: Session, product_ids: List[int]) -> int:
        """Make exactly `product_ids` the trending set. Returns how many are flagged."""
        ids = {int(pid) for pid in product_ids}
        db.query(Product).filter(Product.is_trending == True).update(
            {Product.is_trending: False}, synchronize_session=False,
        )
        count = 0
        if ids:
            count = db.query(Product).filter(Product.id.in_(ids)).update(
                {Product.is_trending: True}, synchronize_session=False,
            )
        db.flush()
        db.expire_all()
        return count


# ==========================================
# Category Service
# ==========================================

class CategoryService:

    def list_all(self, db: Session, active_only: bool = True) -> List[ProductCategory]:
        q = db.query(ProductCategory)
        if active_only:
            q = q.filter(ProductCategory.is_active == True)
        return q.order_by(ProductCategory.sort_order, ProductCategory.name).all()

    def get_by_id(self, db: Session, category_id: int) -> Optional[ProductCategory]:
        return db.query(ProductCategory).filter(ProductCategory.id == category_id).first()

    def get_by_slug(self, db: Session, slug: str) -> Optional[ProductCategory]:
        return db.query(ProductCategory).filter(ProductCategory.slug == slug).first()

    def create(self, db: Session, data: dict) -> ProductCategory:
        cat = ProductCategory(
            name=data["name"],
            slug=unique_slug(db, ProductCategory, data.get("slug") or data["name"]),
            description=data.get("description"),
            image_url=data.get("image_url"),
            sort_order=int(data.get("sort_order") or 0),
            is_active=data.get("is_active", True),
        )
        db.add(cat)
        db.flush()
        return cat

    def update(self, db: Session, category_id: int, data: dict) -> Optional[ProductCategory]:
        cat = self.get_by_id(db, category_id)
        if not cat:
            return None
        if "name" in data and data["name"] != cat.name:
            cat.name = data["name"]
            cat.slug = unique_slug(db, ProductCategory, data["name"], exclude_id=cat.id)
        for key in ["description", "image_url", "sort_order", "is_active"]:
            if key in data and data[key] is not None:
                setattr(cat, key, data[key])
        db.flush()
        return cat

    def delete(self, db: Session, category_id: int) -> bool:
        cat = self.get_by_id(db, category_id)
        if not cat:
            return False
        # Products stay in the catalog, uncategorized
        db.query(Product).filter(Product.category_id == cat.id).update(
            {Product.category_id: None}, synchronize_session=False,
        )
        db.delete(cat)
        db.flush()
        return True


# ==========================================
# Curated Bundle Service
# ==========================================

class CuratedBundleService:

    def list_all(self, db: Session, active_only: bool = True) -> List[CuratedBundle]:
        q = db.query(CuratedBundle)
        if active_only:
            q = q.filter(CuratedBundle.is_active == True)
        return q.order_by(CuratedBundle.sort_order, CuratedBundle.id).all()

    def get_by_id(self, db: Session, bundle_id: int) -> Optional[CuratedBundle]:
        return db.query(CuratedBundle).filter(CuratedBundle.id == bundle_id).first()

    def products_for(self, db: Session, bundle: CuratedBundle) -> List[Product]:
        return product_service.get_many(db, bundle.product_id_list, active_only=True)

    def create(self, db: Session, data: dict) -> CuratedBundle:
        bundle = CuratedBundle(
            name=data["name"],
            description=data.get("description"),
            image_url=data.get("image_url"),
            is_active=data.get("is_active", True),
            sort_order=int(data.get("sort_order") or 0),
        )
        bundle.product_id_list = data.get("product_ids") or []
        db.add(bundle)
        db.flush()
        return bundle

    def update(self, db: Session, bundle_id: int, data: dict) -> Optional[CuratedBundle]:
        bundle = self.get_by_id(db, bundle_id)
        if not bundle:
            return None
        for key in ["name", "description", "image_url", "is_active", "sort_order"]:
            if key in data and data[key] is not None:
                setattr(bundle, key, data[key])
        if "product_ids" in data and data["product_ids"] is not None:
            bundle.product_id_list = data["product_ids"]
        db.flush()
        return bundle

    def delete(self, db: Session, bundle_id: int) -> bool:
        bundle = self.get_by_id(db, bundle_id)
        if not bundle:
            return False
        db.delete(bundle)
        db.flush()
        return True


# Singletons
product_service = ProductService()
category_service = CategoryService()
curated_bundle_service = CuratedBundleService()

"""
Catalog Module - Studio Routes
================================
CRUD for Products, Categories and Curated Bundles.
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.database import get_db
from modules.catalog.service import product_service, category_service, curated_bundle_service

router = APIRouter(prefix="/studio", tags=["catalog-studio"])


# ==========================================
# Schemas
# ==========================================

class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    category_id: Optional[int] = None
    images: List[str] = Field(..., min_length=1)
    stock: int = Field(0, ge=0)
    tags: List[str] = []
    is_trending: bool = False
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category_id: Optional[int] = None
    images: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    tags: Optional[List[str]] = None
    is_trending: Optional[bool] = None
    is_active: Optional[bool] = None


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CuratedBundleIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    product_ids: List[int] = []


class CuratedBundleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    product_ids: Optional[List[int]] = None


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="A record with this name already exists")


# ==========================================
# 🖼️ Products
# ==========================================

@router.get("/products")
async def studio_products(db: Session = Depends(get_db)):
    products = product_service.list_all(db, include_inactive=True)
    return {"products": [p.to_dict() for p in products]}


@router.post("/products", status_code=201)
async def studio_product_create(body: ProductIn, db: Session = Depends(get_db)):
    product = product_service.create(db, body.model_dump())
    _commit(db)
    return product.to_dict()


@router.put("/products/{product_id}")
async def studio_product_update(product_id: int, body: ProductUpdate, db: Session = Depends(get_db)):
    product = product_service.update(db, product_id, body.model_dump(exclude_unset=True))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    _commit(db)
    return product.to_dict()


@router.delete("/products/{product_id}")
async def studio_product_delete(product_id: int, db: Session = Depends(get_db)):
    if not product_service.delete(db, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    db.commit()
    return {"success": True}


# ==========================================
# 🗂️ Categories
# ==========================================

@router.get("/categories")
async def studio_categories(db: Session = Depends(get_db)):
    return {"categories": [c.to_dict() for c in category_service.list_all(db, active_only=False)]}


@router.post("/categories", status_code=201)
async def studio_category_create(body: CategoryIn, db: Session = Depends(get_db)):
    category = category_service.create(db, body.model_dump())
    _commit(db)
    return category.to_dict()


@router.put("/categories/{category_id}")
async def studio_category_update(category_id: int, body: CategoryUpdate, db: Session = Depends(get_db)):
    category = category_service.update(db, category_id, body.model_dump(exclude_unset=True))
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    _commit(db)
    return category.to_dict()


@router.delete("/categories/{category_id}")
async def studio_category_delete(category_id: int, db: Session = Depends(get_db)):
    if not category_service.delete(db, category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    db.commit()
    return {"success": True}


# ==========================================
# 🎁 Curated Bundles
# ==========================================

@router.get("/bundles")
async def studio_bundles(db: Session = Depends(get_db)):
    return {"bundles": [b.to_dict() for b in curated_bundle_service.list_all(db, active_only=False)]}


@router.post("/bundles", status_code=201)
async def studio_bundle_create(body: CuratedBundleIn, db: Session = Depends(get_db)):
    bundle = curated_bundle_service.create(db, body.model_dump())
    db.commit()
    return bundle.to_dict()


@router.put("/bundles/{bundle_id}")
async def studio_bundle_update(bundle_id: int, body: CuratedBundleUpdate, db: Session = Depends(get_db)):
    bundle = curated_bundle_service.update(db, bundle_id, body.model_dump(exclude_unset=True))
    if not bundle:
        raise HTTPException(status_code=404, detail="Bundle not found")
    db.commit()
    return bundle.to_dict()


@router.delete("/bundles/{bundle_id}")
async def studio_bundle_delete(bundle_id: int, db: Session = Depends(get_db)):
    if not curated_bundle_service.delete(db, bundle_id):
        raise HTTPException(status_code=404, detail="Bundle not found")
    db.commit()
    return {"success": True}

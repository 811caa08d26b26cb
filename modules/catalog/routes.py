"""
Catalog Module - Storefront Routes
=====================================
Public JSON catalog: products, categories, curated bundles.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from config.database import get_db
from modules.catalog.service import product_service, category_service, curated_bundle_service

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/products")
async def list_products(
    category: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if q:
        products = product_service.search(db, q)
    else:
        products = product_service.list_all(db, category_slug=category)
    return {"products": [p.to_dict() for p in products], "count": len(products)}


@router.get("/products/trending")
async def trending_products(db: Session = Depends(get_db)):
    return {"products": [p.to_dict() for p in product_service.list_trending(db)]}


@router.get("/products/{slug}")
async def product_detail(slug: str, db: Session = Depends(get_db)):
    product = product_service.get_by_slug(db, slug)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.to_dict()


@router.get("/categories")
async def list_categories(db: Session = Depends(get_db)):
    return {"categories": [c.to_dict() for c in category_service.list_all(db)]}


@router.get("/categories/{slug}")
async def category_detail(slug: str, db: Session = Depends(get_db)):
    category = category_service.get_by_slug(db, slug)
    if not category or not category.is_active:
        raise HTTPException(status_code=404, detail="Category not found")
    products = product_service.list_all(db, category_slug=slug)
    return {**category.to_dict(), "products": [p.to_dict() for p in products]}


@router.get("/curated-bundles")
async def list_curated_bundles(db: Session = Depends(get_db)):
    bundles = curated_bundle_service.list_all(db)
    return {
        "bundles": [
            {**b.to_dict(), "products": [p.to_dict() for p in curated_bundle_service.products_for(db, b)]}
            for b in bundles
        ]
    }

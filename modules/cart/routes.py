"""
Cart Routes
=============
Selection tray and bundle cart for the guest session (JSON API).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import EvoError, NotFoundError, raise_http
from modules.cart.bundle import CustomItemInput
from modules.cart.deps import get_cart_session
from modules.cart.service import cart_service
from modules.cart.state import poster_size_known
from modules.catalog.service import curated_bundle_service

router = APIRouter(prefix="/api", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class BundleRequest(BaseModel):
    product_ids: List[int] = Field(..., min_length=1)
    poster_size: str
    frame_finish: Optional[str] = None
    name: Optional[str] = None


class CustomItemRequest(BaseModel):
    name: str = Field(..., min_length=1)
    preview_url: str = Field(..., min_length=1)
    poster_size: str
    is_framed: bool = False
    quantity: int = Field(1, ge=1)


class CustomBundleRequest(BaseModel):
    items: List[CustomItemRequest] = Field(..., min_length=1)


class OptionsRequest(BaseModel):
    poster_size: str
    frame_finish: Optional[str] = None


class ToggleRequest(BaseModel):
    product_id: int


# ==========================================
# 🛒 Cart
# ==========================================

@router.get("/cart")
async def view_cart(db: Session = Depends(get_db), session_key: str = Depends(get_cart_session)):
    return cart_service.get_cart(db, session_key).state.to_dict()


@router.delete("/cart")
async def clear_cart(db: Session = Depends(get_db), session_key: str = Depends(get_cart_session)):
    cart = cart_service.get_cart(db, session_key)
    cart.clear()
    db.commit()
    return cart.state.to_dict()


@router.post("/cart/bundles", status_code=201)
async def add_bundle(
    body: BundleRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    try:
        frame = cart_service.resolve_options(body.poster_size, body.frame_finish)
        products = cart_service.resolve_products(db, body.product_ids)
    except NotFoundError as e:
        raise_http(e, 404)
    except EvoError as e:
        raise_http(e, 400)

    cart = cart_service.get_cart(db, session_key)
    bundle = cart.add_bundle(products, body.poster_size, frame, name=body.name)
    db.commit()
    return {"bundle": bundle.to_dict(), "cart": cart.state.to_dict()}


@router.post("/cart/bundles/custom", status_code=201)
async def add_custom_bundle(
    body: CustomBundleRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    for item in body.items:
        if not poster_size_known(item.poster_size):
            raise HTTPException(status_code=400, detail=f"Unknown poster size: {item.poster_size}")

    cart = cart_service.get_cart(db, session_key)
    bundle = cart.add_custom_bundle([
        CustomItemInput(
            name=item.name,
            preview_url=item.preview_url,
            poster_size=item.poster_size,
            is_framed=item.is_framed,
            quantity=item.quantity,
        )
        for item in body.items
    ])
    db.commit()
    return {"bundle": bundle.to_dict(), "cart": cart.state.to_dict()}


@router.post("/cart/bundles/curated/{curated_id}", status_code=201)
async def add_curated_bundle(
    curated_id: int,
    body: OptionsRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    curated = curated_bundle_service.get_by_id(db, curated_id)
    if not curated or not curated.is_active:
        raise HTTPException(status_code=404, detail="Bundle not found")
    products = curated_bundle_service.products_for(db, curated)
    if not products:
        raise HTTPException(status_code=400, detail="This bundle has no products")
    try:
        frame = cart_service.resolve_options(body.poster_size, body.frame_finish)
    except EvoError as e:
        raise_http(e, 400)

    cart = cart_service.get_cart(db, session_key)
    bundle = cart.add_curated_bundle(curated, products, body.poster_size, frame)
    db.commit()
    return {"bundle": bundle.to_dict(), "cart": cart.state.to_dict()}


@router.put("/cart/bundles/{bundle_id}")
async def update_bundle(
    bundle_id: str,
    body: BundleRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    cart = cart_service.get_cart(db, session_key)
    if not cart.get_bundle(bundle_id):
        raise HTTPException(status_code=404, detail="Bundle not found")
    try:
        frame = cart_service.resolve_options(body.poster_size, body.frame_finish)
        products = cart_service.resolve_products(db, body.product_ids)
    except NotFoundError as e:
        raise_http(e, 404)
    except EvoError as e:
        raise_http(e, 400)

    bundle = cart.update_bundle(bundle_id, products, body.poster_size, frame)
    db.commit()
    return {"bundle": bundle.to_dict(), "cart": cart.state.to_dict()}


@router.delete("/cart/bundles/{bundle_id}")
async def remove_bundle(
    bundle_id: str,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    cart = cart_service.get_cart(db, session_key)
    if not cart.remove_bundle(bundle_id):
        raise HTTPException(status_code=404, detail="Bundle not found")
    db.commit()
    return cart.state.to_dict()


# ==========================================
# ☑️ Selection
# ==========================================

@router.get("/selection")
async def view_selection(db: Session = Depends(get_db), session_key: str = Depends(get_cart_session)):
    return cart_service.get_selection(db, session_key).to_dict()


@router.post("/selection/toggle")
async def toggle_selection(
    body: ToggleRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    try:
        product = cart_service.resolve_products(db, [body.product_id])[0]
    except NotFoundError as e:
        raise_http(e, 404)

    selection = cart_service.get_selection(db, session_key)
    selected = selection.toggle(product)
    db.commit()
    return {"selected": selected, **selection.to_dict()}


@router.delete("/selection")
async def clear_selection(db: Session = Depends(get_db), session_key: str = Depends(get_cart_session)):
    selection = cart_service.get_selection(db, session_key)
    selection.clear()
    db.commit()
    return selection.to_dict()


@router.post("/selection/commit", status_code=201)
async def commit_selection(
    body: OptionsRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    """Selected products become one cart bundle; the tray empties."""
    try:
        bundle = cart_service.commit_selection(db, session_key, body.poster_size, body.frame_finish)
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return {
        "bundle": bundle.to_dict(),
        "cart": cart_service.get_cart(db, session_key).state.to_dict(),
    }

"""
Pricing Module - Storefront Routes
=====================================
Option tables, the selection-tray deal hint and checkout pricing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from modules.cart.deals import deals_payload, next_deal
from modules.cart.deps import get_cart_session
from modules.cart.service import cart_service
from modules.catalog.options import options_payload
from modules.pricing.service import pricing_service

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


class CalculateRequest(BaseModel):
    coupon_code: Optional[str] = None


@router.get("/options")
async def pricing_options():
    return {**options_payload(), **deals_payload()}


@router.get("/next-deal")
async def pricing_next_deal(count: int = Query(0, ge=0)):
    return next_deal(count).to_dict()


@router.post("/calculate")
async def pricing_calculate(
    body: CalculateRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    """Price the session cart: {success, data} or {success: False, message}."""
    cart = cart_service.get_cart(db, session_key)
    return pricing_service.calculate(db, cart.state.bundles, body.coupon_code)

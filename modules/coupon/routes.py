"""
Coupon Routes - Customer Facing
==================================
AJAX coupon validation for checkout page.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config.database import get_db
from modules.cart.deps import get_cart_session
from modules.coupon.service import coupon_service
from modules.cart.service import cart_service

router = APIRouter(prefix="/api/coupon", tags=["coupon"])


@router.get("/check")
async def check_coupon(
    code: str = Query(""),
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    """AJAX: Validate coupon code against current cart."""
    if not code.strip():
        return JSONResponse({"valid": False, "error": "Please enter a coupon code"})

    cart = cart_service.get_cart(db, session_key).state
    if not cart.bundles:
        return JSONResponse({"valid": False, "error": "Your cart is empty"})

    return JSONResponse(coupon_service.quick_check(db, code, cart.total))

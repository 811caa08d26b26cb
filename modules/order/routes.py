"""
Order Routes
==============
Guest checkout and order lookup.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import EvoError, raise_http
from modules.cart.deps import get_cart_session
from modules.cart.service import cart_service
from modules.order.models import PaymentMethod
from modules.order.service import order_service
from modules.payment.service import payment_service

logger = logging.getLogger("evo.order")

router = APIRouter(prefix="/api", tags=["orders"])


class CheckoutRequest(BaseModel):
    email: str = Field(..., min_length=3)
    shipping_address: str = Field(..., min_length=1)
    payment_method: PaymentMethod
    coupon_code: Optional[str] = None


class LookupRequest(BaseModel):
    order_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)


# ==========================================
# 🧾 Checkout
# ==========================================

@router.post("/checkout", status_code=201)
async def checkout(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    session_key: str = Depends(get_cart_session),
):
    """
    Place the order from the session cart, clear the cart and start the payment.
    A failed gateway start leaves a Pending order the shopper can retry.
    """
    cart = cart_service.get_cart(db, session_key)
    try:
        order = order_service.place_order(
            db, cart.state,
            email=body.email,
            shipping_address=body.shipping_address,
            payment_method=body.payment_method.value,
            coupon_code=body.coupon_code,
        )
    except EvoError as e:
        db.rollback()
        raise_http(e, 400)

    cart.clear()
    db.commit()

    payment = None
    if order.status == "Pending":
        payment = payment_service.create_gateway_payment(db, order.id, order.payment_method)
        if payment["success"]:
            db.commit()
        else:
            db.rollback()

    return {"order": order.to_dict(), "payment": payment}


# ==========================================
# 🔎 Lookup
# ==========================================

@router.post("/orders/lookup")
async def order_lookup(body: LookupRequest, db: Session = Depends(get_db)):
    order = order_service.find_order(db, body.order_id, body.email)
    if not order:
        raise HTTPException(status_code=404, detail="No order found for this id and email")
    return order.to_dict()


@router.get("/orders/{order_id}")
async def order_detail(order_id: str, email: str = Query(...), db: Session = Depends(get_db)):
    order = order_service.find_order(db, order_id, email)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order.to_dict()

"""
Payment Routes
================
Gateway start and gateway callbacks (Razorpay JSON, PhonePe form post).
"""

import logging

from fastapi import APIRouter, Request, Depends, Query, HTTPException
from sqlalchemy.orm import Session

from config.database import get_db
from modules.payment.service import payment_service

logger = logging.getLogger("evo.payment")

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.get("/gateways")
async def list_gateways():
    return {"gateways": payment_service.list_gateways()}


# ==========================================
# 🏦 Gateway: Start
# ==========================================

@router.post("/{order_id}/start")
async def pay_gateway(
    order_id: str,
    gateway: str = Query(""),
    db: Session = Depends(get_db),
):
    """(Re)start payment for a Pending order. Empty gateway keeps the order's method."""
    result = payment_service.create_gateway_payment(db, order_id.upper(), gateway_name=gateway)
    if not result.get("success"):
        db.rollback()
        raise HTTPException(status_code=400, detail=result.get("message", "Payment could not be started"))
    db.commit()
    return result


# ==========================================
# 🏦 Gateway: Callback
# ==========================================

async def _callback_params(request: Request) -> dict:
    """Collect callback fields from a JSON or form body plus the X-VERIFY header."""
    params = {}
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        body = await request.json()
        if isinstance(body, dict):
            params.update(body)
    elif content_type:
        form = await request.form()
        params.update({k: v for k, v in form.items()})
    x_verify = request.headers.get("x-verify")
    if x_verify:
        params["x_verify"] = x_verify
    return params


@router.post("/{gateway}/callback")
async def gateway_callback(
    gateway: str,
    request: Request,
    order_id: str = Query(...),
    db: Session = Depends(get_db),
):
    params = await _callback_params(request)
    result = payment_service.verify_gateway_callback(db, gateway, params, order_id.upper())

    # declined payments cancel the order, so the session is committed either way
    db.commit()
    if result.get("success") or result.get("pending"):
        return result
    logger.info(f"Callback for {order_id} on {gateway} failed: {result.get('message')}")
    raise HTTPException(status_code=400, detail=result.get("message", "Payment failed"))

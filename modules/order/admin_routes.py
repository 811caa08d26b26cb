"""
Order Studio Routes
=====================
Order list, status updates and the studio dashboard.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import EvoError, NotFoundError, raise_http
from modules.order.models import OrderStatus
from modules.order.service import order_service

router = APIRouter(prefix="/studio", tags=["order-studio"])


class StatusUpdate(BaseModel):
    status: OrderStatus


@router.get("/orders")
async def studio_orders(status: Optional[OrderStatus] = None, db: Session = Depends(get_db)):
    orders = order_service.get_all_orders(db, status=status.value if status else None)
    return {"orders": [o.to_dict() for o in orders], "count": len(orders)}


@router.get("/orders/{order_id}")
async def studio_order_detail(order_id: str, db: Session = Depends(get_db)):
    order = order_service.get_order_by_id(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return {
        **order.to_dict(),
        "track_id": order.track_id,
        "cancellation_reason": order.cancellation_reason,
    }


@router.put("/orders/{order_id}/status")
async def studio_order_status(order_id: str, body: StatusUpdate, db: Session = Depends(get_db)):
    try:
        order = order_service.update_status(db, order_id, body.status.value)
    except NotFoundError as e:
        raise_http(e, 404)
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return order.to_dict()


@router.get("/dashboard")
async def studio_dashboard(db: Session = Depends(get_db)):
    stats = order_service.get_dashboard_stats(db)
    recent = order_service.get_all_orders(db)[:5]
    return {**stats, "recent_orders": [o.to_dict() for o in recent]}

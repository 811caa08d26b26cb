"""
Coupon Studio Routes
=====================
CRUD for coupons and usage stats.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import EvoError, NotFoundError, raise_http
from modules.coupon.models import DiscountType
from modules.coupon.service import coupon_service

router = APIRouter(prefix="/studio/coupons", tags=["coupon-studio"])


class CouponIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., gt=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, gt=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, gt=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None


# ==========================================
# 📋 Coupon List
# ==========================================

@router.get("")
async def coupon_list(
    page: int = Query(1, ge=1),
    active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    per_page = 30
    coupons, total = coupon_service.get_all_coupons(
        db, page=page, per_page=per_page, active=active, search=search,
    )
    return {
        "coupons": [c.to_dict() for c in coupons],
        "page": page,
        "total": total,
        "total_pages": max(1, (total + per_page - 1) // per_page),
        "stats": coupon_service.get_stats(db),
    }


@router.get("/{coupon_id}")
async def coupon_detail(coupon_id: int, db: Session = Depends(get_db)):
    coupon = coupon_service.get_coupon_by_id(db, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon.to_dict()


# ==========================================
# ➕ Create / ✏️ Edit / 🗑️ Delete
# ==========================================

@router.post("", status_code=201)
async def coupon_create(body: CouponIn, db: Session = Depends(get_db)):
    try:
        coupon = coupon_service.create_coupon(db, body.model_dump(mode="json"))
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return coupon.to_dict()


@router.put("/{coupon_id}")
async def coupon_update(coupon_id: int, body: CouponUpdate, db: Session = Depends(get_db)):
    try:
        coupon = coupon_service.update_coupon(db, coupon_id, body.model_dump(mode="json", exclude_unset=True))
    except NotFoundError as e:
        raise_http(e, 404)
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return coupon.to_dict()


@router.delete("/{coupon_id}")
async def coupon_delete(coupon_id: int, db: Session = Depends(get_db)):
    try:
        deleted = coupon_service.delete_coupon(db, coupon_id)
    except EvoError as e:
        raise_http(e, 400)
    if not deleted:
        raise HTTPException(status_code=404, detail="Coupon not found")
    db.commit()
    return {"success": True}

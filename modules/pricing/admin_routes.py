"""
Pricing Module - Studio Routes
================================
CRUD for store-wide pricing rules.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import EvoError, NotFoundError, raise_http
from modules.pricing.models import RuleType, TargetType
from modules.pricing.service import pricing_service

router = APIRouter(prefix="/studio/pricing", tags=["pricing-studio"])


class RuleIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    rule_type: RuleType
    value: Optional[Decimal] = Field(None, ge=0)
    target_type: TargetType = TargetType.CART
    target_value: List[str] = []
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    sort_order: int = 0


class RuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    rule_type: Optional[RuleType] = None
    value: Optional[Decimal] = Field(None, ge=0)
    target_type: Optional[TargetType] = None
    target_value: Optional[List[str]] = None
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None


@router.get("/rules")
async def rule_list(db: Session = Depends(get_db)):
    return {"rules": [r.to_dict() for r in pricing_service.get_all_rules(db)]}


@router.post("/rules", status_code=201)
async def rule_create(body: RuleIn, db: Session = Depends(get_db)):
    try:
        rule = pricing_service.create_rule(db, body.model_dump(mode="json"))
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return rule.to_dict()


@router.put("/rules/{rule_id}")
async def rule_update(rule_id: int, body: RuleUpdate, db: Session = Depends(get_db)):
    try:
        rule = pricing_service.update_rule(db, rule_id, body.model_dump(mode="json", exclude_unset=True))
    except NotFoundError as e:
        raise_http(e, 404)
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return rule.to_dict()


@router.delete("/rules/{rule_id}")
async def rule_delete(rule_id: int, db: Session = Depends(get_db)):
    if not pricing_service.delete_rule(db, rule_id):
        raise HTTPException(status_code=404, detail="Pricing rule not found")
    db.commit()
    return {"success": True}

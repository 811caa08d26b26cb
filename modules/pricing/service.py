"""
Pricing Module - Service
=========================
Checkout pricing: bundle totals -> store-wide rules -> coupon -> final total.
Also studio CRUD for pricing rules.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, ValidationError
from common.helpers import now_utc, optional_decimal, parse_datetime
from modules.cart.bundle import CartBundle
from modules.coupon.service import coupon_service
from modules.pricing.calculator import summarize_bundles, compose_final_total
from modules.pricing.models import PricingRule, TargetType
from modules.pricing.rules import AppliedRule, RULE_CLASSES, apply_rules

logger = logging.getLogger("evo.pricing")

ZERO = Decimal("0")


@dataclass
class PricingBreakdown:
    subtotal: Decimal = ZERO
    total: Decimal = ZERO                  # after bundle deals
    total_discount: Decimal = ZERO         # bundle deals only
    items_count: int = 0
    applied_deals: List[Dict[str, Any]] = field(default_factory=list)
    applied_rules: List[AppliedRule] = field(default_factory=list)
    rule_discount: Decimal = ZERO
    coupon: Optional[Dict[str, Any]] = None
    coupon_discount: Decimal = ZERO
    final_total: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": str(self.subtotal),
            "total": str(self.total),
            "total_discount": str(self.total_discount),
            "items_count": self.items_count,
            "applied_deals": self.applied_deals,
            "applied_rules": [r.to_dict() for r in self.applied_rules],
            "rule_discount": str(self.rule_discount),
            "coupon": self.coupon,
            "coupon_discount": str(self.coupon_discount),
            "final_total": str(self.final_total),
        }


class PricingService:

    # ------------------------------------------
    # Data access
    # ------------------------------------------

    def get_active_rules(self, db: Session) -> List[PricingRule]:
        return (
            db.query(PricingRule)
            .filter(PricingRule.is_active == True)
            .order_by(PricingRule.sort_order, PricingRule.id)
            .all()
        )

    # ------------------------------------------
    # Quote
    # ------------------------------------------

    def quote(
        self,
        db: Session,
        bundles: Sequence[CartBundle],
        coupon_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PricingBreakdown:
        """Price a cart. Raises only on unexpected failures; see calculate()."""
        bundles = list(bundles)
        if not bundles:
            return PricingBreakdown()

        now = now or now_utc()
        totals = summarize_bundles(bundles)
        breakdown = PricingBreakdown(
            subtotal=totals.subtotal,
            total=totals.total,
            total_discount=totals.total_discount,
            items_count=totals.items_count,
            applied_deals=[
                {"bundle_id": b.id, "deal": b.applied_deal.to_dict()}
                for b in bundles if b.applied_deal
            ],
        )

        outcome = apply_rules(totals.total, self.get_active_rules(db), now=now)
        breakdown.applied_rules = outcome.applied_rules
        breakdown.rule_discount = outcome.rule_discount

        coupon, coupon_discount = coupon_service.resolve(db, coupon_code, totals.total, now=now)
        breakdown.coupon = coupon.to_dict() if coupon else None
        breakdown.coupon_discount = coupon_discount

        breakdown.final_total = compose_final_total(
            totals.total, outcome.rule_discount, coupon_discount,
        )
        return breakdown

    def calculate(
        self,
        db: Session,
        bundles: Sequence[CartBundle],
        coupon_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """quote() wrapped for the storefront: {success, data} or {success: False, message}."""
        try:
            breakdown = self.quote(db, bundles, coupon_code, now=now)
            return {"success": True, "data": breakdown.to_dict()}
        except Exception as e:
            logger.error(f"Pricing calculation failed: {e}", exc_info=True)
            return {"success": False, "message": "Failed to calculate pricing"}

    # ------------------------------------------
    # Studio: rule CRUD
    # ------------------------------------------

    def get_all_rules(self, db: Session) -> List[PricingRule]:
        return db.query(PricingRule).order_by(PricingRule.sort_order, PricingRule.id).all()

    def get_rule(self, db: Session, rule_id: int) -> Optional[PricingRule]:
        return db.query(PricingRule).filter(PricingRule.id == rule_id).first()

    def _check_types(self, rule_type: str, target_type: str):
        if rule_type not in RULE_CLASSES:
            raise ValidationError(f"Unknown rule type: {rule_type}")
        if target_type not in [t.value for t in TargetType]:
            raise ValidationError(f"Unknown target type: {target_type}")

    def create_rule(self, db: Session, data: dict) -> PricingRule:
        rule_type = data.get("rule_type") or ""
        target_type = data.get("target_type") or TargetType.CART.value
        self._check_types(rule_type, target_type)

        rule = PricingRule(
            name=data["name"],
            description=data.get("description") or None,
            rule_type=rule_type,
            value=optional_decimal(data.get("value")),
            target_type=target_type,
            target_value=", ".join(data.get("target_value") or []) or None,
            min_order_value=optional_decimal(data.get("min_order_value")),
            start_date=parse_datetime(data.get("start_date")),
            end_date=parse_datetime(data.get("end_date")),
            is_active=data.get("is_active", True),
            sort_order=int(data.get("sort_order") or 0),
        )
        db.add(rule)
        db.flush()
        logger.info(f"Pricing rule '{rule.name}' ({rule_type}) created")
        return rule

    def update_rule(self, db: Session, rule_id: int, data: dict) -> PricingRule:
        rule = self.get_rule(db, rule_id)
        if not rule:
            raise NotFoundError("Pricing rule not found")

        self._check_types(
            data.get("rule_type") or rule.rule_type,
            data.get("target_type") or rule.target_type,
        )
        for key in ["name", "description", "rule_type", "target_type", "is_active", "sort_order"]:
            if key in data and data[key] is not None:
                setattr(rule, key, data[key])
        for key in ["value", "min_order_value"]:
            if key in data:
                setattr(rule, key, optional_decimal(data[key]))
        for key in ["start_date", "end_date"]:
            if key in data:
                setattr(rule, key, parse_datetime(data[key]))
        if "target_value" in data:
            rule.target_value = ", ".join(data["target_value"] or []) or None

        db.flush()
        return rule

    def delete_rule(self, db: Session, rule_id: int) -> bool:
        rule = self.get_rule(db, rule_id)
        if not rule:
            return False
        db.delete(rule)
        db.flush()
        return True


# Singleton
pricing_service = PricingService()

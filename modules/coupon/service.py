"""
Coupon Service
================
Validate, price, redeem and release coupons.

Validation chain:
  1. Code exists & is active
  2. Date range check (start_date / end_date)
  3. Usage limit
  4. Min order value

Pricing previews use resolve(), which never raises and never consumes
usage. redeem() runs once, when an order is placed.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Tuple

from sqlalchemy import or_, desc, func as sa_func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.exceptions import EvoError, NotFoundError, ValidationError
from common.helpers import now_utc, as_utc, to_decimal, optional_decimal, parse_datetime
from modules.coupon.models import Coupon, DiscountType

logger = logging.getLogger("evo.coupon")

ZERO = Decimal("0")


class CouponValidationError(EvoError):
    """Raised when coupon validation fails."""
    pass


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class CouponService:

    # ------------------------------------------
    # Lookup
    # ------------------------------------------

    def get_by_code(self, db: Session, code: str) -> Optional[Coupon]:
        """Active coupon with this code, or None.

        Codes are stored upper-case and matched case-insensitively,
        so "save10" finds SAVE10.
        """
        code = normalize_code(code)
        if not code:
            return None
        return (
            db.query(Coupon)
            .filter(Coupon.code == code, Coupon.is_active == True)
            .first()
        )

    # ------------------------------------------
    # Validate (raises CouponValidationError)
    # ------------------------------------------

    def check_eligibility(self, coupon: Coupon, order_total: Decimal, now: datetime) -> None:
        if not coupon.is_active:
            raise CouponValidationError("This coupon is not active")
        if coupon.start_date and now < as_utc(coupon.start_date):
            raise CouponValidationError("This coupon is not active yet")
        if coupon.end_date and now > as_utc(coupon.end_date):
            raise CouponValidationError("This coupon has expired")
        if coupon.is_exhausted:
            raise CouponValidationError("This coupon has reached its usage limit")
        if coupon.min_order_value is not None and order_total < coupon.min_order_value:
            raise CouponValidationError(
                f"Minimum order value for this coupon is ₹{coupon.min_order_value:,.2f}"
            )

    def validate(
        self, db: Session, code: str, order_total, now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Full validation chain. Returns coupon info + calculated discount."""
        total = to_decimal(order_total)
        now = as_utc(now) if now else now_utc()

        coupon = self.get_by_code(db, code)
        if not coupon:
            raise CouponValidationError("Invalid coupon code")

        self.check_eligibility(coupon, total, now)
        discount = self.calculate_discount(coupon, total)

        return {
            "coupon_id": coupon.id,
            "code": coupon.code,
            "description": coupon.description,
            "discount_type": coupon.discount_type,
            "discount_value": str(coupon.discount_value),
            "discount_display": coupon.discount_display,
            "discount_amount": str(discount),
        }

    def calculate_discount(self, coupon: Coupon, order_total: Decimal) -> Decimal:
        value = to_decimal(coupon.discount_value)
        if coupon.discount_type == DiscountType.PERCENTAGE:
            return order_total * value / Decimal("100")
        # Fixed amount - can't exceed order
        return min(value, order_total)

    # ------------------------------------------
    # Resolve (pricing path, never raises)
    # ------------------------------------------

    def resolve(
        self, db: Session, code: Optional[str], order_total, now: Optional[datetime] = None,
    ) -> Tuple[Optional[Coupon], Decimal]:
        """(coupon or None, discount). Ineligible or failing lookups give zero discount."""
        if not normalize_code(code):
            return None, ZERO
        total = to_decimal(order_total)
        now = as_utc(now) if now else now_utc()

        try:
            coupon = self.get_by_code(db, code)
        except SQLAlchemyError as e:
            logger.warning(f"Coupon lookup failed for {normalize_code(code)}: {e}")
            return None, ZERO

        if not coupon:
            return None, ZERO
        try:
            self.check_eligibility(coupon, total, now)
        except CouponValidationError:
            return coupon, ZERO
        return coupon, self.calculate_discount(coupon, total)

    # ------------------------------------------
    # Quick check (AJAX, no side effects)
    # ------------------------------------------

    def quick_check(self, db: Session, code: str, order_total) -> Dict[str, Any]:
        """Same as validate but returns error dict on failure (for AJAX)."""
        try:
            return {"valid": True, **self.validate(db, code, order_total)}
        except CouponValidationError as e:
            return {"valid": False, "error": e.message}

    # ------------------------------------------
    # Redemption
    # ------------------------------------------

    def redeem(self, db: Session, coupon_id: int) -> bool:
        """Atomically take one use. False if the limit was already reached."""
        updated = (
            db.query(Coupon)
            .filter(
                Coupon.id == coupon_id,
                or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
            )
            .update({Coupon.used_count: Coupon.used_count + 1}, synchronize_session=False)
        )
        db.flush()
        if updated == 1:
            logger.info(f"Coupon {coupon_id} redeemed")
            return True
        logger.warning(f"Coupon {coupon_id} could not be redeemed: usage limit reached")
        return False

    def release(self, db: Session, coupon_id: int) -> None:
        """Give back one use (cancelled/expired order)."""
        db.query(Coupon).filter(
            Coupon.id == coupon_id, Coupon.used_count > 0,
        ).update({Coupon.used_count: Coupon.used_count - 1}, synchronize_session=False)
        db.flush()
        logger.info(f"Coupon {coupon_id} usage released")

    # ------------------------------------------
    # Admin: CRUD
    # ------------------------------------------

    def get_all_coupons(
        self, db: Session, page: int = 1, per_page: int = 30,
        active: Optional[bool] = None, search: str = None,
    ) -> Tuple[List[Coupon], int]:
        q = db.query(Coupon)
        if active is not None:
            q = q.filter(Coupon.is_active == active)
        if search:
            q = q.filter(
                (Coupon.code.ilike(f"%{search}%")) | (Coupon.description.ilike(f"%{search}%"))
            )
        total = q.count()
        coupons = (
            q.order_by(desc(Coupon.created_at), desc(Coupon.id))
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return coupons, total

    def get_coupon_by_id(self, db: Session, coupon_id: int) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def _check_values(self, discount_type: str, discount_value: Decimal):
        if discount_type not in (DiscountType.PERCENTAGE.value, DiscountType.FIXED_AMOUNT.value):
            raise ValidationError(f"Unknown discount type: {discount_type}")
        if discount_value <= 0:
            raise ValidationError("Discount value must be positive")
        if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
            raise ValidationError("Percentage discount cannot exceed 100")

    def create_coupon(self, db: Session, data: dict) -> Coupon:
        code = normalize_code(data.get("code"))
        if not code:
            raise ValidationError("Coupon code is required")
        if db.query(Coupon.id).filter(Coupon.code == code).first():
            raise ValidationError(f"Coupon {code} already exists")

        discount_type = data.get("discount_type") or DiscountType.PERCENTAGE.value
        discount_value = to_decimal(data.get("discount_value"))
        self._check_values(discount_type, discount_value)

        coupon = Coupon(
            code=code,
            description=data.get("description") or None,
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_value=optional_decimal(data.get("min_order_value")),
            usage_limit=int(data["usage_limit"]) if data.get("usage_limit") else None,
            used_count=0,
            start_date=parse_datetime(data.get("start_date")),
            end_date=parse_datetime(data.get("end_date")),
            is_active=data.get("is_active", True),
        )
        db.add(coupon)
        db.flush()
        logger.info(f"Coupon {code} created")
        return coupon

    def update_coupon(self, db: Session, coupon_id: int, data: dict) -> Coupon:
        coupon = self.get_coupon_by_id(db, coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")

        if data.get("code"):
            code = normalize_code(data["code"])
            taken = db.query(Coupon.id).filter(Coupon.code == code, Coupon.id != coupon.id).first()
            if taken:
                raise ValidationError(f"Coupon {code} already exists")
            coupon.code = code

        for key in ["description", "discount_type", "is_active"]:
            if key in data and data[key] is not None:
                setattr(coupon, key, data[key])
        if data.get("discount_value") is not None:
            coupon.discount_value = to_decimal(data["discount_value"])
        self._check_values(coupon.discount_type, to_decimal(coupon.discount_value))

        if "min_order_value" in data:
            coupon.min_order_value = optional_decimal(data["min_order_value"])
        if "usage_limit" in data:
            val = data["usage_limit"]
            coupon.usage_limit = int(val) if val else None
        for key in ["start_date", "end_date"]:
            if key in data:
                setattr(coupon, key, parse_datetime(data[key]))

        db.flush()
        return coupon

    def delete_coupon(self, db: Session, coupon_id: int) -> bool:
        coupon = self.get_coupon_by_id(db, coupon_id)
        if not coupon:
            return False
        if (coupon.used_count or 0) > 0:
            raise ValidationError("This coupon has been used and cannot be deleted. Deactivate it instead.")
        db.delete(coupon)
        db.flush()
        return True

    # ------------------------------------------
    # Stats
    # ------------------------------------------

    def get_stats(self, db: Session) -> Dict[str, Any]:
        total = db.query(Coupon).count()
        active = db.query(Coupon).filter(Coupon.is_active == True).count()
        total_usages = db.query(sa_func.coalesce(sa_func.sum(Coupon.used_count), 0)).scalar()
        return {
            "total_coupons": total,
            "active_coupons": active,
            "total_usages": int(total_usages or 0),
        }


# Singleton
coupon_service = CouponService()

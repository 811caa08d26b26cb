"""
Coupon Module - Models
========================
Shopper-entered discount codes.

  - Percentage or fixed amount (fixed never exceeds the cart total)
  - Optional minimum order value
  - Optional usage limit (used_count is incremented at order placement)
  - Optional start/end window
"""

import enum
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Text, DateTime
from sqlalchemy.sql import func
from config.database import Base


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), unique=True, nullable=False, index=True)   # always upper case
    description = Column(Text, nullable=True)

    discount_type = Column(String(20), default=DiscountType.PERCENTAGE.value, nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)

    min_order_value = Column(Numeric(10, 2), nullable=True)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, default=0, nullable=False)

    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def discount_display(self) -> str:
        if self.discount_type == DiscountType.PERCENTAGE:
            return f"{self.discount_value.normalize():f}% off"
        return f"₹{self.discount_value:,.2f} off"

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_value": str(self.discount_value),
            "discount_display": self.discount_display,
            "min_order_value": str(self.min_order_value) if self.min_order_value is not None else None,
            "usage_limit": self.usage_limit,
            "used_count": self.used_count,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<Coupon {self.code}>"

"""
Pricing Module - Models
========================
PricingRule: store-wide, studio-configured discount conditions evaluated
on top of bundle deals at checkout pricing time.
"""

import enum

from sqlalchemy import Column, Integer, String, Numeric, Boolean, Text, DateTime
from sqlalchemy.sql import func

from config.database import Base


class RuleType(str, enum.Enum):
    PERCENTAGE_DISCOUNT = "percentage_discount"
    FIXED_AMOUNT = "fixed_amount"
    BUY_X_GET_Y = "buy_x_get_y"        # realized by bundle deals; informational here
    FREE_SHIPPING = "free_shipping"    # shipping is priced elsewhere


class TargetType(str, enum.Enum):
    CART = "cart"
    PRODUCT = "product"
    CATEGORY = "category"
    BUNDLE = "bundle"


class PricingRule(Base):
    __tablename__ = "pricing_rules"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    rule_type = Column(String(30), nullable=False)
    value = Column(Numeric(10, 2), nullable=True)              # percent or rupees

    # Stored for the studio; rules are evaluated against the cart total
    target_type = Column(String(20), default=TargetType.CART.value, nullable=False)
    target_value = Column(Text, nullable=True)                 # comma-separated ids/slugs

    min_order_value = Column(Numeric(10, 2), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def rule_type_label(self) -> str:
        return {
            "percentage_discount": "Percentage off",
            "fixed_amount": "Flat amount off",
            "buy_x_get_y": "Buy X get Y",
            "free_shipping": "Free shipping",
        }.get(self.rule_type, self.rule_type)

    @property
    def target_values(self) -> list:
        return [v.strip() for v in (self.target_value or "").split(",") if v.strip()]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "rule_type": self.rule_type,
            "rule_type_label": self.rule_type_label,
            "value": str(self.value) if self.value is not None else None,
            "target_type": self.target_type,
            "target_value": self.target_values,
            "min_order_value": str(self.min_order_value) if self.min_order_value is not None else None,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
        }

    def __repr__(self):
        return f"<PricingRule {self.name} ({self.rule_type})>"

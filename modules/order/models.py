"""
Order Module - Models
======================
Guest order with a full pricing snapshot (bundles + every discount layer).
"""

import enum
import json

from sqlalchemy import Column, Integer, String, Numeric, Text, ForeignKey, DateTime
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import money_str


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(str, enum.Enum):
    RAZORPAY = "razorpay"
    PHONEPE = "phonepe"
    COUPON_FREE = "coupon_free"     # nothing left to pay after discounts


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(20), primary_key=True)                  # EVO-482913
    customer_email = Column(String(255), nullable=False, index=True)
    shipping_address = Column(Text, nullable=False)
    payment_method = Column(String(20), nullable=False)

    # Snapshot
    items = Column(Text, nullable=False, default="[]")          # serialized CartBundles
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    bundle_discount = Column(Numeric(10, 2), nullable=False, default=0)
    rule_discount = Column(Numeric(10, 2), nullable=False, default=0)
    coupon_discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)              # amount charged

    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True)
    coupon_code = Column(String(50), nullable=True)

    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False, index=True)

    # Payment
    track_id = Column(String(100), nullable=True)               # gateway-side order/transaction id
    payment_ref = Column(String(100), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation
    cancellation_reason = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def bundles(self) -> list:
        try:
            return json.loads(self.items or "[]")
        except json.JSONDecodeError:
            return []

    @property
    def items_count(self) -> int:
        return sum(
            int(item.get("quantity", 0))
            for bundle in self.bundles for item in bundle.get("items", [])
        )

    @property
    def status_label(self) -> str:
        labels = {
            OrderStatus.PENDING.value: "Awaiting payment",
            OrderStatus.PROCESSING.value: "Processing",
            OrderStatus.SHIPPED.value: "Shipped",
            OrderStatus.DELIVERED.value: "Delivered",
            OrderStatus.CANCELLED.value: "Cancelled",
        }
        return labels.get(self.status, self.status)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_email": self.customer_email,
            "shipping_address": self.shipping_address,
            "payment_method": self.payment_method,
            "bundles": self.bundles,
            "items_count": self.items_count,
            "subtotal": money_str(self.subtotal),
            "bundle_discount": money_str(self.bundle_discount),
            "rule_discount": money_str(self.rule_discount),
            "coupon_discount": money_str(self.coupon_discount),
            "total": money_str(self.total),
            "coupon_code": self.coupon_code,
            "status": self.status,
            "status_label": self.status_label,
            "payment_ref": self.payment_ref,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Order {self.id} {self.status}>"

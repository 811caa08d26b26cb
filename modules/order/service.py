"""
Order Module - Service Layer
===============================
Checkout, payment finalization, cancellation, expiration cleanup.
"""

import json
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import desc, func as sa_func

from common.exceptions import ValidationError, NotFoundError
from common.helpers import now_utc, as_utc, format_rupees, generate_unique_order_id
from config.settings import PAYMENT_WINDOW_MINUTES
from modules.cart.deals import MIN_ORDER_QUANTITY
from modules.cart.state import CartState
from modules.coupon.service import coupon_service, CouponValidationError
from modules.order.models import Order, OrderStatus, PaymentMethod
from modules.pricing.service import pricing_service

logger = logging.getLogger("evo.order")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_ADDRESS_LENGTH = 10


class OrderService:

    # ==========================================
    # Checkout
    # ==========================================

    def place_order(
        self,
        db: Session,
        cart: CartState,
        email: str,
        shipping_address: str,
        payment_method: str,
        coupon_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Create an order from the shopper's cart:
        1. Validate contact details and the cart (non-empty, every bundle at the minimum)
        2. Price the cart server-side (bundles -> rules -> coupon)
        3. Redeem the coupon (atomic, fails checkout if exhausted meanwhile)
        4. Persist the Pending order; a zero total is finalized immediately

        Caller clears the cart and commits.
        """
        email = (email or "").strip().lower()
        shipping_address = (shipping_address or "").strip()
        if not EMAIL_RE.match(email):
            raise ValidationError("Please enter a valid email address.")
        if len(shipping_address) < MIN_ADDRESS_LENGTH:
            raise ValidationError("Please enter a complete shipping address.")
        if payment_method not in (PaymentMethod.RAZORPAY.value, PaymentMethod.PHONEPE.value):
            raise ValidationError(f"Unsupported payment method: {payment_method}")

        if not cart.bundles:
            raise ValidationError("Your cart is empty")
        if not cart.is_min_order_met:
            raise ValidationError(f"Each bundle needs at least {MIN_ORDER_QUANTITY} posters")

        now = now or now_utc()
        breakdown = pricing_service.quote(db, cart.bundles, coupon_code, now=now)

        order = Order(
            id=generate_unique_order_id(db),
            customer_email=email,
            shipping_address=shipping_address,
            payment_method=payment_method,
            items=json.dumps([b.to_dict() for b in cart.bundles]),
            subtotal=breakdown.subtotal,
            bundle_discount=breakdown.total_discount,
            rule_discount=breakdown.rule_discount,
            coupon_discount=breakdown.coupon_discount,
            total=breakdown.final_total,
            status=OrderStatus.PENDING.value,
        )

        # Only a coupon that actually discounted the order is recorded and consumed
        if breakdown.coupon and breakdown.coupon_discount > 0:
            coupon_id = breakdown.coupon["id"]
            if not coupon_service.redeem(db, coupon_id):
                raise CouponValidationError("This coupon has reached its usage limit")
            order.coupon_id = coupon_id
            order.coupon_code = breakdown.coupon["code"]

        if order.total <= 0:
            order.payment_method = PaymentMethod.COUPON_FREE.value
            order.payment_ref = f"COUPON-FREE-{order.id}"
            order.paid_at = now
            order.status = OrderStatus.PROCESSING.value

        db.add(order)
        db.flush()
        logger.info(
            f"Order {order.id} placed: total={format_rupees(order.total)} "
            f"(bundles -{order.bundle_discount}, rules -{order.rule_discount}, "
            f"coupon -{order.coupon_discount}) status={order.status}"
        )
        return order

    # ==========================================
    # Finalize (mark as Processing)
    # ==========================================

    def finalize_order(self, db: Session, order_id: str, payment_ref: str = None) -> Optional[Order]:
        """Pending -> Processing after a verified payment. None if not Pending."""
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if not order or order.status != OrderStatus.PENDING:
            return None

        order.status = OrderStatus.PROCESSING.value
        if payment_ref:
            order.payment_ref = payment_ref
        order.paid_at = order.paid_at or now_utc()
        db.flush()
        logger.info(f"Order {order.id} paid (ref {order.payment_ref})")
        return order

    # ==========================================
    # Cancel
    # ==========================================

    def cancel_order(self, db: Session, order_id: str, reason: str = "") -> Optional[Order]:
        """Cancel a Pending order and give its coupon use back."""
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if not order or order.status != OrderStatus.PENDING:
            return None
        self._cancel(db, order, reason)
        db.flush()
        return order

    # ==========================================
    # Expiration Cleanup
    # ==========================================

    def release_expired_orders(self, db: Session, now: Optional[datetime] = None) -> int:
        """Cancel Pending orders older than the payment window."""
        now = as_utc(now) if now else now_utc()
        limit_time = now - timedelta(minutes=PAYMENT_WINDOW_MINUTES)

        pending = db.query(Order).filter(Order.status == OrderStatus.PENDING).all()
        expired = [o for o in pending if o.created_at and as_utc(o.created_at) < limit_time]

        for order in expired:
            self._cancel(db, order, f"Not paid within {PAYMENT_WINDOW_MINUTES} minutes")

        if expired:
            db.commit()
            logger.info(f"Released {len(expired)} expired orders")

        return len(expired)

    # ==========================================
    # Query
    # ==========================================

    def get_order_by_id(self, db: Session, order_id: str) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id).first()

    def find_order(self, db: Session, order_id: str, email: str) -> Optional[Order]:
        """Public lookup: the id must belong to this email."""
        order = self.get_order_by_id(db, (order_id or "").strip().upper())
        if not order or order.customer_email != (email or "").strip().lower():
            return None
        return order

    def get_all_orders(self, db: Session, status: str = None) -> List[Order]:
        q = db.query(Order).order_by(desc(Order.created_at), desc(Order.id))
        if status:
            q = q.filter(Order.status == status)
        return q.all()

    # ==========================================
    # Studio
    # ==========================================

    def update_status(self, db: Session, order_id: str, status: str) -> Order:
        order = self.get_order_by_id(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        if status not in [s.value for s in OrderStatus]:
            raise ValidationError(f"Unknown order status: {status}")
        if status == order.status:
            return order

        old = order.status
        if status == OrderStatus.CANCELLED and old == OrderStatus.PENDING:
            self._cancel(db, order, "Cancelled from studio")
        else:
            order.status = status
            if status == OrderStatus.PROCESSING and not order.paid_at:
                order.paid_at = now_utc()
            if status == OrderStatus.CANCELLED:
                order.cancelled_at = now_utc()
        db.flush()
        logger.info(f"Order {order.id} status {old} -> {status}")
        return order

    def get_dashboard_stats(self, db: Session) -> Dict[str, Any]:
        from modules.catalog.models import Product

        total_orders = db.query(Order).count()
        revenue = (
            db.query(sa_func.coalesce(sa_func.sum(Order.total), 0))
            .filter(Order.status != OrderStatus.CANCELLED)
            .scalar()
        )
        return {
            "total_orders": total_orders,
            "total_revenue": str(revenue or 0),
            "total_products": db.query(Product).count(),
            "pending_orders": db.query(Order).filter(Order.status == OrderStatus.PENDING).count(),
        }

    # ==========================================
    # Private Helpers
    # ==========================================

    def _cancel(self, db: Session, order: Order, reason: str):
        order.status = OrderStatus.CANCELLED.value
        order.cancellation_reason = reason or None
        order.cancelled_at = now_utc()
        if order.coupon_id:
            coupon_service.release(db, order.coupon_id)
        logger.info(f"Order {order.id} cancelled: {reason}")


# Singleton
order_service = OrderService()

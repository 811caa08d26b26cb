import json
from datetime import timedelta
from decimal import Decimal

import pytest

from common.exceptions import NotFoundError, ValidationError
from common.helpers import now_utc
from modules.cart.bundle import ProductRef
from modules.coupon.service import CouponValidationError, coupon_service
from modules.order.models import Order
from modules.order.service import order_service

ADDRESS = "12 MG Road, Bengaluru 560001"


def fill(cart, count=10, size="A4"):
    cart.add_bundle([ProductRef(id=str(i), name=f"Poster {i}") for i in range(count)], size)
    return cart.state


def place(db, state, **kwargs):
    data = {"email": "Shopper@Example.com", "shipping_address": ADDRESS, "payment_method": "razorpay"}
    data.update(kwargs)
    return order_service.place_order(db, state, **data)


def test_place_order(db, cart):
    order = place(db, fill(cart))

    assert order.id.startswith("EVO-")
    assert order.status == "Pending"
    assert order.customer_email == "shopper@example.com"
    assert order.subtotal == Decimal("790")
    assert order.bundle_discount == Decimal("316")
    assert order.total == Decimal("474")
    assert order.coupon_id is None
    assert order.items_count == 10
    assert json.loads(order.items)[0]["applied_deal"]["buy"] == 10


@pytest.mark.parametrize("overrides", [
    {"email": "not-an-email"},
    {"shipping_address": "short"},
    {"payment_method": "cash"},
])
def test_checkout_details_validated(db, cart, overrides):
    with pytest.raises(ValidationError):
        place(db, fill(cart), **overrides)


def test_empty_cart_rejected(db, cart):
    with pytest.raises(ValidationError, match="empty"):
        place(db, cart.state)


def test_bundle_below_minimum_rejected(db, cart):
    fill(cart, 10)
    with pytest.raises(ValidationError, match="at least 6"):
        place(db, fill(cart, 3))


def test_coupon_redeemed_on_order(db, cart):
    coupon = coupon_service.create_coupon(db, {"code": "SAVE10", "discount_type": "percentage", "discount_value": "10"})
    db.commit()

    order = place(db, fill(cart), coupon_code="save10")
    assert order.coupon_code == "SAVE10"
    assert order.coupon_discount == Decimal("47.4")
    assert order.total == Decimal("426.6")
    db.expire_all()
    assert coupon.used_count == 1


def test_ineligible_coupon_not_recorded(db, cart):
    coupon = coupon_service.create_coupon(
        db, {"code": "BIG", "discount_type": "fixed_amount", "discount_value": "50", "min_order_value": "5000"},
    )
    db.commit()
    order = place(db, fill(cart), coupon_code="BIG")
    assert order.coupon_id is None
    assert order.coupon_discount == 0
    db.expire_all()
    assert coupon.used_count == 0


def test_coupon_taken_meanwhile_fails_checkout(db, cart, monkeypatch):
    coupon_service.create_coupon(db, {"code": "SAVE10", "discount_type": "percentage", "discount_value": "10"})
    db.commit()
    monkeypatch.setattr(coupon_service, "redeem", lambda db, coupon_id: False)
    with pytest.raises(CouponValidationError):
        place(db, fill(cart), coupon_code="SAVE10")


def test_zero_total_order_is_paid_immediately(db, cart):
    coupon_service.create_coupon(db, {"code": "FREE", "discount_type": "percentage", "discount_value": "100"})
    db.commit()

    order = place(db, fill(cart), coupon_code="FREE")
    assert order.total == 0
    assert order.status == "Processing"
    assert order.payment_method == "coupon_free"
    assert order.payment_ref == f"COUPON-FREE-{order.id}"
    assert order.paid_at is not None


def test_finalize_only_once(db, cart):
    order = place(db, fill(cart))
    assert order_service.finalize_order(db, order.id, payment_ref="pay_1").status == "Processing"
    assert order.payment_ref == "pay_1"
    assert order_service.finalize_order(db, order.id, payment_ref="pay_2") is None
    assert order.payment_ref == "pay_1"


def test_cancel_releases_coupon(db, cart):
    coupon = coupon_service.create_coupon(db, {"code": "SAVE10", "discount_type": "percentage", "discount_value": "10"})
    db.commit()
    order = place(db, fill(cart), coupon_code="SAVE10")

    cancelled = order_service.cancel_order(db, order.id, reason="changed my mind")
    assert cancelled.status == "Cancelled"
    assert cancelled.cancellation_reason == "changed my mind"
    db.expire_all()
    assert coupon.used_count == 0
    assert order_service.cancel_order(db, order.id) is None


def test_release_expired_orders(db, cart):
    old = place(db, fill(cart))
    fresh = place(db, cart.state)
    now = now_utc()
    old.created_at = now - timedelta(hours=2)
    fresh.created_at = now
    db.commit()

    assert order_service.release_expired_orders(db, now=now) == 1
    db.refresh(old)
    db.refresh(fresh)
    assert old.status == "Cancelled"
    assert fresh.status == "Pending"


def test_find_order_requires_matching_email(db, cart):
    order = place(db, fill(cart))
    assert order_service.find_order(db, order.id.lower(), " SHOPPER@example.com ") is order
    assert order_service.find_order(db, order.id, "someone@else.com") is None
    assert order_service.find_order(db, "EVO-000000", "shopper@example.com") is None


def test_update_status(db, cart):
    order = place(db, fill(cart))
    with pytest.raises(NotFoundError):
        order_service.update_status(db, "EVO-404", "Shipped")
    with pytest.raises(ValidationError):
        order_service.update_status(db, order.id, "Lost")

    order_service.update_status(db, order.id, "Processing")
    assert order.paid_at is not None
    order_service.update_status(db, order.id, "Shipped")
    assert order.status == "Shipped"


def test_dashboard_stats(db, cart, products):
    a = place(db, fill(cart))
    b = place(db, cart.state)
    order_service.cancel_order(db, b.id)
    db.commit()

    stats = order_service.get_dashboard_stats(db)
    assert stats["total_orders"] == 2
    assert stats["pending_orders"] == 1
    assert stats["total_products"] == 12
    assert Decimal(stats["total_revenue"]) == a.total


def test_unsaved_order_serializes_zero_amounts():
    data = Order(id="EVO-000001", customer_email="a@b.co").to_dict()
    assert data["total"] == "0"
    assert data["coupon_discount"] == "0"
    assert "status_color" not in data

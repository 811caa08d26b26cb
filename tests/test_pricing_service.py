from decimal import Decimal

import pytest

from common.exceptions import NotFoundError, ValidationError
from modules.cart.bundle import CartBundle
from modules.cart.deals import BundleDeal
from modules.coupon.service import coupon_service
from modules.pricing.service import pricing_service


def bundle(total, subtotal=None, deal=None, bundle_id="b1"):
    subtotal = Decimal(subtotal if subtotal is not None else total)
    total = Decimal(total)
    return CartBundle(
        id=bundle_id, name="Bundle", subtotal=subtotal, total=total,
        discount=subtotal - total, applied_deal=deal,
    )


def add_rule(db, **kwargs):
    data = {"name": "rule", "rule_type": "percentage_discount", "value": "10"}
    data.update(kwargs)
    rule = pricing_service.create_rule(db, data)
    db.commit()
    return rule


def test_empty_cart_evaluates_nothing(db, monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(pricing_service, "get_active_rules", boom)
    monkeypatch.setattr(coupon_service, "resolve", boom)

    breakdown = pricing_service.quote(db, [], coupon_code="SAVE10")
    assert breakdown.final_total == 0
    assert breakdown.subtotal == breakdown.total == 0
    assert breakdown.applied_rules == []
    assert breakdown.coupon is None


def test_rule_over_threshold(db):
    add_rule(db, name="10% off orders over ₹1000", min_order_value="1000")
    breakdown = pricing_service.quote(db, [bundle("1200")])
    assert breakdown.rule_discount == Decimal("120")
    assert breakdown.final_total == Decimal("1080")
    assert breakdown.coupon_discount == 0


def test_rules_stack(db):
    add_rule(db, name="ten", sort_order=1)
    add_rule(db, name="fifty", rule_type="fixed_amount", value="50", sort_order=2)
    breakdown = pricing_service.quote(db, [bundle("1000")])
    assert breakdown.rule_discount == Decimal("150")
    assert [r.name for r in breakdown.applied_rules] == ["ten", "fifty"]


def test_inactive_rules_ignored(db):
    add_rule(db, is_active=False)
    assert pricing_service.quote(db, [bundle("1000")]).rule_discount == 0


def test_rules_see_post_bundle_total(db):
    add_rule(db, min_order_value="500")
    deal = BundleDeal(10, 4, 14)
    breakdown = pricing_service.quote(db, [bundle("474", subtotal="790", deal=deal)])
    assert breakdown.rule_discount == 0
    assert breakdown.total_discount == Decimal("316")
    assert breakdown.applied_deals == [{"bundle_id": "b1", "deal": {"buy": 10, "get": 4, "total": 14}}]


def test_final_total_never_negative(db):
    add_rule(db, rule_type="fixed_amount", value="250")
    coupon_service.create_coupon(db, {"code": "FLAT100", "discount_type": "fixed_amount", "discount_value": "100"})
    db.commit()

    breakdown = pricing_service.quote(db, [bundle("300")], coupon_code="FLAT100")
    assert breakdown.rule_discount == Decimal("250")
    assert breakdown.coupon_discount == Decimal("100")
    assert breakdown.final_total == 0


def test_coupon_applies_to_bundle_total(db):
    coupon_service.create_coupon(db, {"code": "SAVE10", "discount_type": "percentage", "discount_value": "10"})
    db.commit()
    breakdown = pricing_service.quote(db, [bundle("500"), bundle("500", bundle_id="b2")], coupon_code="save10")
    assert breakdown.coupon["code"] == "SAVE10"
    assert breakdown.coupon_discount == Decimal("100")
    assert breakdown.final_total == Decimal("900")


def test_exhausted_coupon_in_quote(db):
    coupon = coupon_service.create_coupon(
        db, {"code": "ONCE", "discount_type": "percentage", "discount_value": "10", "usage_limit": 1},
    )
    coupon.used_count = 1
    db.commit()
    breakdown = pricing_service.quote(db, [bundle("1000")], coupon_code="ONCE")
    assert breakdown.coupon_discount == 0
    assert breakdown.final_total == Decimal("1000")


def test_calculate_success_shape(db):
    add_rule(db, min_order_value="1000")
    result = pricing_service.calculate(db, [bundle("1200")])
    assert result["success"] is True
    assert Decimal(result["data"]["final_total"]) == Decimal("1080")
    assert Decimal(result["data"]["rule_discount"]) == Decimal("120")


def test_calculate_failure_returns_flag(db, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(pricing_service, "get_active_rules", broken)
    result = pricing_service.calculate(db, [bundle("100")])
    assert result == {"success": False, "message": "Failed to calculate pricing"}


def test_rule_crud(db):
    rule = add_rule(db, target_type="category", target_value=["cars", "anime"])
    assert rule.target_values == ["cars", "anime"]

    updated = pricing_service.update_rule(db, rule.id, {"value": "15", "is_active": False})
    assert updated.value == Decimal("15")
    assert updated.is_active is False

    with pytest.raises(ValidationError):
        pricing_service.create_rule(db, {"name": "bad", "rule_type": "mystery"})
    with pytest.raises(ValidationError):
        pricing_service.create_rule(db, {"name": "bad", "rule_type": "fixed_amount", "target_type": "planet"})
    with pytest.raises(NotFoundError):
        pricing_service.update_rule(db, 9999, {"value": "1"})

    assert pricing_service.delete_rule(db, rule.id) is True
    assert pricing_service.get_rule(db, rule.id) is None

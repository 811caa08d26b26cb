from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

from modules.pricing.models import RuleType
from modules.pricing.rules import (
    RULE_CLASSES, BuyXGetYRule, FixedAmountRule, FreeShippingRule,
    PercentageDiscountRule, apply_rules, build_rule,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def record(**kwargs):
    data = dict(
        id=1, name="rule", rule_type="percentage_discount", value="10",
        min_order_value=None, start_date=None, end_date=None, is_active=True, sort_order=0,
    )
    data.update(kwargs)
    return SimpleNamespace(**data)


def test_every_rule_type_has_a_class():
    assert set(RULE_CLASSES) == {t.value for t in RuleType}


def test_rules_are_additive():
    rules = [
        PercentageDiscountRule(id=1, name="10% off", value=Decimal("10"), sort_order=1),
        FixedAmountRule(id=2, name="₹50 off", value=Decimal("50"), sort_order=2),
    ]
    outcome = apply_rules(Decimal("1000"), rules, now=NOW)
    assert outcome.rule_discount == Decimal("150")
    assert [r.name for r in outcome.applied_rules] == ["10% off", "₹50 off"]


def test_rules_applied_in_sort_order():
    rules = [
        FixedAmountRule(id=2, name="second", value=Decimal("5"), sort_order=9),
        FixedAmountRule(id=1, name="first", value=Decimal("5"), sort_order=1),
    ]
    outcome = apply_rules(Decimal("100"), rules, now=NOW)
    assert [r.id for r in outcome.applied_rules] == [1, 2]


def test_percentage_over_threshold():
    rule = record(name="10% off orders over ₹1000", min_order_value="1000")
    outcome = apply_rules(Decimal("1200"), [rule], now=NOW)
    assert outcome.rule_discount == Decimal("120")

    outcome = apply_rules(Decimal("999"), [rule], now=NOW)
    assert outcome.rule_discount == 0
    assert outcome.applied_rules == []


def test_fixed_amount_capped_at_total():
    outcome = apply_rules(Decimal("200"), [record(rule_type="fixed_amount", value="500")], now=NOW)
    assert outcome.rule_discount == Decimal("200")


def test_date_window():
    future = record(start_date=NOW + timedelta(days=1))
    expired = record(end_date=NOW - timedelta(seconds=1))
    running = record(start_date=NOW - timedelta(days=1), end_date=NOW + timedelta(days=1))
    assert apply_rules(Decimal("100"), [future], now=NOW).rule_discount == 0
    assert apply_rules(Decimal("100"), [expired], now=NOW).rule_discount == 0
    assert apply_rules(Decimal("100"), [running], now=NOW).rule_discount == Decimal("10")


def test_naive_dates_are_utc():
    rule = record(end_date=datetime(2026, 3, 1, 11, 0))
    assert apply_rules(Decimal("100"), [rule], now=NOW).rule_discount == 0


def test_inactive_rule_skipped():
    assert apply_rules(Decimal("100"), [record(is_active=False)], now=NOW).rule_discount == 0


def test_informational_rule_types_contribute_nothing():
    rules = [
        BuyXGetYRule(id=1, name="bxgy", value=Decimal("3")),
        FreeShippingRule(id=2, name="ship"),
    ]
    outcome = apply_rules(Decimal("1000"), rules, now=NOW)
    assert outcome.rule_discount == 0
    assert outcome.applied_rules == []


def test_missing_value_contributes_nothing():
    outcome = apply_rules(Decimal("1000"), [record(value=None), record(rule_type="fixed_amount", value="")], now=NOW)
    assert outcome.rule_discount == 0


def test_unknown_rule_type_is_skipped():
    assert build_rule(record(rule_type="mystery")) is None
    outcome = apply_rules(Decimal("100"), [record(rule_type="mystery"), record(id=2)], now=NOW)
    assert [r.id for r in outcome.applied_rules] == [2]


def test_build_rule_maps_fields():
    rule = build_rule(record(rule_type="fixed_amount", value="25.50", min_order_value="100", sort_order=None))
    assert isinstance(rule, FixedAmountRule)
    assert rule.value == Decimal("25.50")
    assert rule.min_order_value == Decimal("100")
    assert rule.sort_order == 0


def test_applied_rule_serializes():
    outcome = apply_rules("1000", [record(id=5, name="Ten")], now=NOW)
    assert outcome.applied_rules[0].to_dict() == {
        "id": 5, "name": "Ten", "rule_type": "percentage_discount", "discount": "100",
    }

"""
Pricing Module - Store-Wide Rules
===================================
One class per rule type. Stored PricingRule rows are turned into these by
build_rule(); apply_rules() sums every eligible rule's discount in
sort_order (rules stack, there is no best-rule-only selection).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Type

from common.helpers import now_utc, as_utc, to_decimal, optional_decimal
from modules.pricing.models import RuleType

logger = logging.getLogger("evo.pricing")

ZERO = Decimal("0")


@dataclass
class StoreRule:
    id: Optional[int]
    name: str
    value: Optional[Decimal] = None
    min_order_value: Optional[Decimal] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = True
    sort_order: int = 0

    rule_type = None

    def is_eligible(self, order_total: Decimal, now: datetime) -> bool:
        if not self.is_active:
            return False
        if self.start_date and as_utc(self.start_date) > now:
            return False
        if self.end_date and as_utc(self.end_date) < now:
            return False
        if self.min_order_value is not None and order_total < self.min_order_value:
            return False
        return True

    def discount_for(self, order_total: Decimal) -> Decimal:
        raise NotImplementedError


class PercentageDiscountRule(StoreRule):
    rule_type = RuleType.PERCENTAGE_DISCOUNT

    def discount_for(self, order_total: Decimal) -> Decimal:
        if self.value is None:
            return ZERO
        return order_total * self.value / Decimal("100")


class FixedAmountRule(StoreRule):
    rule_type = RuleType.FIXED_AMOUNT

    def discount_for(self, order_total: Decimal) -> Decimal:
        if self.value is None:
            return ZERO
        return min(self.value, order_total)


class BuyXGetYRule(StoreRule):
    rule_type = RuleType.BUY_X_GET_Y

    def discount_for(self, order_total: Decimal) -> Decimal:
        # Free units are granted by the bundle allocator
        return ZERO


class FreeShippingRule(StoreRule):
    rule_type = RuleType.FREE_SHIPPING

    def discount_for(self, order_total: Decimal) -> Decimal:
        return ZERO


RULE_CLASSES: Dict[str, Type[StoreRule]] = {
    cls.rule_type.value: cls
    for cls in (PercentageDiscountRule, FixedAmountRule, BuyXGetYRule, FreeShippingRule)
}

_missing = {t.value for t in RuleType} - set(RULE_CLASSES)
if _missing:
    raise RuntimeError(f"No rule class for rule types: {sorted(_missing)}")


def build_rule(record) -> Optional[StoreRule]:
    """PricingRule row (or anything shaped like one) -> StoreRule. Unknown type: None."""
    rule_cls = RULE_CLASSES.get(getattr(record.rule_type, "value", record.rule_type))
    if rule_cls is None:
        logger.warning(f"Skipping pricing rule {record.id} with unknown type {record.rule_type!r}")
        return None
    return rule_cls(
        id=record.id,
        name=record.name,
        value=optional_decimal(record.value),
        min_order_value=optional_decimal(record.min_order_value),
        start_date=record.start_date,
        end_date=record.end_date,
        is_active=bool(record.is_active),
        sort_order=record.sort_order or 0,
    )


# ==========================================
# Evaluation
# ==========================================

@dataclass
class AppliedRule:
    id: Optional[int]
    name: str
    rule_type: str
    discount: Decimal

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rule_type": self.rule_type,
            "discount": str(self.discount),
        }


@dataclass
class RuleOutcome:
    applied_rules: List[AppliedRule] = field(default_factory=list)
    rule_discount: Decimal = ZERO


def apply_rules(order_total, rules: Iterable, now: Optional[datetime] = None) -> RuleOutcome:
    """Evaluate rules against the post-bundle cart total."""
    total = to_decimal(order_total)
    now = as_utc(now) if now else now_utc()

    built = []
    for rule in rules:
        if not isinstance(rule, StoreRule):
            rule = build_rule(rule)
        if rule is not None:
            built.append(rule)

    outcome = RuleOutcome()
    for rule in sorted(built, key=lambda r: r.sort_order):
        if not rule.is_eligible(total, now):
            continue
        discount = rule.discount_for(total)
        if discount > 0:
            outcome.applied_rules.append(
                AppliedRule(rule.id, rule.name, rule.rule_type.value, discount)
            )
            outcome.rule_discount += discount
    return outcome

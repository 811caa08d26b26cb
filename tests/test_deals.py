from modules.cart.deals import BUNDLE_DEALS, MIN_ORDER_QUANTITY, BundleDeal, best_deal, deals_payload, next_deal


def test_deal_table():
    assert MIN_ORDER_QUANTITY == 6
    assert {(d.buy, d.get, d.total) for d in BUNDLE_DEALS} == {(10, 4, 14), (12, 6, 18), (15, 8, 23)}


def test_best_deal_thresholds():
    assert best_deal(0) is None
    assert best_deal(5) is None
    assert best_deal(9) is None
    assert best_deal(10).buy == 10
    assert best_deal(13).buy == 12
    assert best_deal(15).buy == 15
    assert best_deal(40).buy == 15


def test_best_deal_respects_custom_minimum():
    deals = [BundleDeal(buy=2, get=1, total=3)]
    assert best_deal(2, deals, min_quantity=3) is None
    assert best_deal(3, deals, min_quantity=3).buy == 2


def test_next_deal_progression():
    assert next_deal(0).to_dict() == {"buy": 6, "get": 0, "total": 6}
    assert next_deal(5).to_dict() == {"buy": 6, "get": 0, "total": 6}
    assert next_deal(6).buy == 10
    assert next_deal(10).buy == 12
    assert next_deal(12).buy == 15
    assert next_deal(15).buy == 15
    assert next_deal(30).buy == 15


def test_deals_payload_sorted():
    payload = deals_payload()
    assert [d["buy"] for d in payload["deals"]] == [10, 12, 15]
    assert payload["min_order_quantity"] == 6


def test_deal_round_trip():
    assert BundleDeal.from_dict(None) is None
    assert BundleDeal.from_dict({"buy": "10", "get": 4, "total": 14}) == BundleDeal(10, 4, 14)

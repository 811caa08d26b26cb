from modules.cart.bundle import ProductRef
from modules.cart.selection import Selection
from modules.cart.state import CartController, MemoryCartStore


def test_toggle_adds_and_removes():
    selection = Selection()
    poster = ProductRef(id="7", name="Poster 7")

    assert selection.toggle(poster) is True
    assert selection.is_selected(7)
    assert selection.count == 1

    assert selection.toggle(poster) is False
    assert not selection.is_selected("7")
    assert selection.count == 0


def test_toggle_accepts_dicts():
    selection = Selection()
    selection.toggle({"id": 3, "name": "Poster 3"})
    assert selection.items[0].id == "3"


def test_next_deal_hint():
    selection = Selection()
    for i in range(6):
        selection.toggle(ProductRef(id=str(i), name=f"P{i}"))
    assert selection.to_dict()["next_deal"]["buy"] == 10
    assert selection.to_dict()["count"] == 6


def test_selection_persists_apart_from_cart():
    store = MemoryCartStore()
    selection = Selection(store, "shopper")
    selection.toggle(ProductRef(id="1", name="P1"))

    cart = CartController(store, "shopper")
    cart.add_bundle([ProductRef(id="9", name="P9")] * 6, "A4")

    assert Selection(store, "shopper").count == 1
    assert CartController(store, "shopper").state.bundle_count == 1

    selection.clear()
    assert Selection(store, "shopper").count == 0

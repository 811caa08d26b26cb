from decimal import Decimal
from types import SimpleNamespace

from modules.cart.bundle import CustomItemInput, ProductRef
from modules.cart.state import CartController, CartState, MemoryCartStore, poster_size_known
from modules.catalog.options import find_frame
from modules.pricing.calculator import FreeUnitPolicy


def refs(count, start=0):
    return [ProductRef(id=str(i), name=f"Poster {i}") for i in range(start, start + count)]


def assert_bundle_consistent(bundle):
    assert bundle.subtotal - bundle.total == bundle.discount
    assert bundle.discount >= 0
    assert bundle.total >= 0


def test_add_bundle_allocates(cart):
    bundle = cart.add_bundle(refs(10), "A4")

    assert bundle.id == "bundle-1000"
    assert bundle.name == "Custom Bundle 1"
    assert bundle.total_units == 10
    assert bundle.applied_deal.buy == 10
    assert sum(1 for i in bundle.items if i.is_free) == 4
    assert bundle.subtotal == Decimal("790")
    assert bundle.total == Decimal("474")
    assert_bundle_consistent(bundle)


def test_add_bundle_with_frame(cart):
    frame = find_frame("A3", "black")
    bundle = cart.add_bundle(refs(6), "A3", frame)
    assert all(i.price == Decimal("586") for i in bundle.items)
    assert bundle.applied_deal is None
    assert bundle.total == Decimal("3516")


def test_small_bundle_has_no_free_items(cart):
    bundle = cart.add_bundle(refs(3), "A4")
    assert bundle.applied_deal is None
    assert not any(i.is_free for i in bundle.items)
    assert not cart.state.is_min_order_met


def test_cart_totals_across_bundles(cart):
    first = cart.add_bundle(refs(10), "A4")
    second = cart.add_bundle(refs(15, start=100), "A4", name="Wall")

    state = cart.state
    assert state.bundle_count == 2
    assert second.name == "Wall"
    assert state.items_count == 25
    assert state.subtotal == first.subtotal + second.subtotal
    assert state.total == first.total + second.total
    assert state.total_discount == first.discount + second.discount
    # cart badge shows the first bundle's deal, the list shows all of them
    assert state.applied_deal.buy == 10
    assert [d["deal"]["buy"] for d in state.applied_deals] == [10, 15]


def test_bundle_ids_are_unique_for_same_clock_tick():
    cart = CartController(MemoryCartStore(), "s", clock=lambda: 5000)
    a = cart.add_bundle(refs(6), "A4")
    b = cart.add_bundle(refs(6), "A4")
    assert a.id == "bundle-5000"
    assert b.id == "bundle-5001"


def test_state_persists_through_store():
    store = MemoryCartStore()
    cart = CartController(store, "s1")
    cart.add_bundle(refs(12), "A3")

    reloaded = CartController(store, "s1")
    assert reloaded.state.to_dict() == cart.state.to_dict()
    assert CartController(store, "other").state.bundle_count == 0


def test_unreadable_store_payload_gives_empty_cart():
    store = MemoryCartStore()
    store.save("s1", {"bundles": [{"name": "no id"}]})
    assert CartController(store, "s1").state.bundle_count == 0


def test_update_bundle_replaces_items(cart):
    bundle = cart.add_bundle(refs(6), "A4")
    updated = cart.update_bundle(bundle.id, refs(15), "A3")

    assert updated is bundle
    assert updated.total_units == 15
    assert updated.applied_deal.buy == 15
    assert all(i.poster_size == "A3" for i in updated.items)
    assert_bundle_consistent(updated)


def test_update_unknown_bundle_is_noop(cart):
    cart.add_bundle(refs(6), "A4")
    before = cart.state.to_dict()
    assert cart.update_bundle("missing", refs(10), "A4") is None
    assert cart.state.to_dict() == before


def test_remove_and_clear(cart):
    a = cart.add_bundle(refs(6), "A4")
    cart.add_bundle(refs(6), "A4")

    assert cart.remove_bundle(a.id)
    assert not cart.remove_bundle(a.id)
    assert cart.state.bundle_count == 1

    cart.clear()
    assert cart.state.bundle_count == 0
    assert cart.state.total == 0
    assert CartController(cart.store, cart.key).state.bundle_count == 0


def test_custom_bundle(cart):
    bundle = cart.add_custom_bundle([
        CustomItemInput(name="Dog", preview_url="/u/dog.png", poster_size="A4", is_framed=True, quantity=2),
        CustomItemInput(name="Cat", preview_url="/u/cat.png", poster_size="A3"),
    ])

    assert bundle.id.startswith("bundle-custom-")
    assert bundle.name == "Custom Designed Bundle"
    assert bundle.total_units == 3
    dog, cat = bundle.items
    assert dog.product.is_custom and dog.product.image_url == "/u/dog.png"
    assert dog.price == Decimal("456")
    assert dog.quantity == 2
    assert cat.price == Decimal("109")
    assert bundle.total == Decimal("1021")


def test_curated_bundle_keeps_name(cart):
    curated = SimpleNamespace(name="Petrolhead Pack")
    bundle = cart.add_curated_bundle(curated, refs(10), "A4")
    assert bundle.name == "Petrolhead Pack"
    assert bundle.applied_deal.buy == 10


def test_split_units_policy_on_controller():
    cart = CartController(MemoryCartStore(), "s", policy=FreeUnitPolicy.SPLIT_UNITS)
    bundle = cart.add_custom_bundle([
        CustomItemInput(name="Big", preview_url="/u/a.png", poster_size="A4", quantity=10),
    ])
    free_units = sum(i.quantity for i in bundle.items if i.is_free)
    assert free_units == 4
    assert bundle.discount == Decimal("316")


def test_state_round_trip():
    cart = CartController(MemoryCartStore(), "s")
    cart.add_bundle(refs(10), "A4", find_frame("A4"))
    data = cart.state.to_dict()
    restored = CartState.from_dict(data)
    assert restored.to_dict() == data
    assert CartState.from_dict(None).bundle_count == 0


def test_poster_size_known():
    assert poster_size_known("A4")
    assert poster_size_known("A3")
    assert not poster_size_known("A5")

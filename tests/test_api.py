from decimal import Decimal

import httpx

from modules.cart.bundle import ProductRef
from modules.coupon.service import coupon_service
from modules.catalog.service import category_service, curated_bundle_service
from modules.order.service import order_service
from modules.payment.gateways.razorpay import razorpay_signature
from modules.pricing.service import pricing_service

CHECKOUT = {
    "email": "shopper@example.com",
    "shipping_address": "12 MG Road, Bengaluru 560001",
    "payment_method": "razorpay",
}


class FakeResponse:
    status_code = 200

    def __init__(self, data):
        self._data = data

    def json(self):
        return self._data


def add_bundle(client, products, count=10, size="A4", frame=None):
    body = {"product_ids": [p.id for p in products[:count]], "poster_size": size}
    if frame:
        body["frame_finish"] = frame
    return client.post("/api/cart/bundles", json=body)


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_pricing_options(client):
    data = client.get("/api/pricing/options").json()
    assert {s["size"] for s in data["poster_sizes"]} == {"A4", "A3"}
    assert [d["buy"] for d in data["deals"]] == [10, 12, 15]
    assert data["min_order_quantity"] == 6
    assert client.get("/api/pricing/next-deal?count=7").json()["buy"] == 10


def test_catalog(client, db, products):
    cat = category_service.create(db, {"name": "Cars"})
    products[0].category_id = cat.id
    products[1].is_active = False
    db.commit()

    listing = client.get("/api/products").json()
    assert listing["count"] == 11
    assert client.get("/api/products?category=cars").json()["count"] == 1
    assert client.get(f"/api/products/{products[0].slug}").json()["category"] == "Cars"
    assert client.get(f"/api/products/{products[1].slug}").status_code == 404
    assert client.get("/api/categories/cars").json()["products"][0]["id"] == products[0].id


def test_cart_flow(client, products):
    resp = add_bundle(client, products)
    assert resp.status_code == 201
    cart = resp.json()["cart"]
    assert Decimal(cart["total"]) == Decimal("474")
    assert cart["applied_deal"]["buy"] == 10
    bundle_id = resp.json()["bundle"]["id"]

    # same cookie, same cart
    assert client.get("/api/cart").json()["bundle_count"] == 1

    resp = client.put(f"/api/cart/bundles/{bundle_id}", json={
        "product_ids": [p.id for p in products], "poster_size": "A3",
    })
    assert resp.status_code == 200
    assert resp.json()["bundle"]["applied_deal"]["buy"] == 12

    assert client.put("/api/cart/bundles/nope", json={"product_ids": [products[0].id], "poster_size": "A4"}).status_code == 404
    assert client.delete(f"/api/cart/bundles/{bundle_id}").json()["bundle_count"] == 0
    assert client.delete(f"/api/cart/bundles/{bundle_id}").status_code == 404


def test_cart_is_per_session(client, products):
    add_bundle(client, products)
    client.cookies.clear()
    assert client.get("/api/cart").json()["bundle_count"] == 0


def test_cart_rejects_bad_input(client, products):
    assert add_bundle(client, products, size="A5").status_code == 400
    assert add_bundle(client, products, frame="Gold").status_code == 400
    resp = client.post("/api/cart/bundles", json={"product_ids": [9999], "poster_size": "A4"})
    assert resp.status_code == 404


def test_framed_bundle(client, products):
    resp = add_bundle(client, products, count=6, frame="Black")
    items = resp.json()["bundle"]["items"]
    assert all(Decimal(i["price"]) == Decimal("456") for i in items)


def test_custom_bundle(client):
    resp = client.post("/api/cart/bundles/custom", json={"items": [
        {"name": "My dog", "preview_url": "/u/dog.png", "poster_size": "A3", "quantity": 6},
    ]})
    assert resp.status_code == 201
    assert resp.json()["bundle"]["name"] == "Custom Designed Bundle"
    assert resp.json()["bundle"]["total_units"] == 6

    bad = client.post("/api/cart/bundles/custom", json={"items": [
        {"name": "x", "preview_url": "/u/x.png", "poster_size": "B1"},
    ]})
    assert bad.status_code == 400


def test_curated_bundle(client, db, products):
    curated = curated_bundle_service.create(db, {"name": "Starter", "product_ids": [p.id for p in products[:10]]})
    empty = curated_bundle_service.create(db, {"name": "Empty", "product_ids": []})
    db.commit()

    resp = client.post(f"/api/cart/bundles/curated/{curated.id}", json={"poster_size": "A4"})
    assert resp.status_code == 201
    assert resp.json()["bundle"]["name"] == "Starter"
    assert client.post(f"/api/cart/bundles/curated/{empty.id}", json={"poster_size": "A4"}).status_code == 400
    assert client.post("/api/cart/bundles/curated/999", json={"poster_size": "A4"}).status_code == 404


def test_selection_commit(client, products):
    for p in products[:5]:
        client.post("/api/selection/toggle", json={"product_id": p.id})
    assert client.post("/api/selection/commit", json={"poster_size": "A4"}).status_code == 400

    resp = client.post("/api/selection/toggle", json={"product_id": products[5].id})
    assert resp.json()["selected"] is True
    assert resp.json()["count"] == 6

    resp = client.post("/api/selection/commit", json={"poster_size": "A4"})
    assert resp.status_code == 201
    assert resp.json()["cart"]["bundle_count"] == 1
    assert client.get("/api/selection").json()["count"] == 0


def test_calculate_and_coupon_check(client, db, products):
    pricing_service.create_rule(db, {"name": "5% off", "rule_type": "percentage_discount", "value": "5"})
    coupon_service.create_coupon(db, {"code": "SAVE10", "discount_type": "percentage", "discount_value": "10"})
    db.commit()

    empty = client.post("/api/pricing/calculate", json={}).json()
    assert empty["success"] and Decimal(empty["data"]["final_total"]) == 0
    assert client.get("/api/coupon/check?code=SAVE10").json() == {"valid": False, "error": "Your cart is empty"}

    add_bundle(client, products)
    data = client.post("/api/pricing/calculate", json={"coupon_code": "save10"}).json()["data"]
    assert Decimal(data["total"]) == Decimal("474")
    assert Decimal(data["rule_discount"]) == Decimal("23.7")
    assert Decimal(data["coupon_discount"]) == Decimal("47.4")
    assert Decimal(data["final_total"]) == Decimal("402.9")

    check = client.get("/api/coupon/check?code=save10").json()
    assert check["valid"] is True
    assert client.get("/api/coupon/check?code=NOPE").json()["valid"] is False


def test_checkout_and_payment(client, db, products, monkeypatch):
    monkeypatch.setattr(httpx, "post", lambda *a, **k: FakeResponse({"id": "order_RZP1"}))
    add_bundle(client, products)

    resp = client.post("/api/checkout", json=CHECKOUT)
    assert resp.status_code == 201
    order = resp.json()["order"]
    assert order["status"] == "Pending"
    assert resp.json()["payment"]["payload"]["order_id"] == "order_RZP1"
    assert client.get("/api/cart").json()["bundle_count"] == 0

    lookup = client.post("/api/orders/lookup", json={"order_id": order["id"], "email": "SHOPPER@example.com"})
    assert lookup.status_code == 200
    assert client.get(f"/api/orders/{order['id']}?email=other@example.com").status_code == 404

    callback = {
        "razorpay_order_id": "order_RZP1",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": razorpay_signature("order_RZP1", "pay_1"),
    }
    resp = client.post(f"/api/payment/razorpay/callback?order_id={order['id']}", json=callback)
    assert resp.status_code == 200
    assert order_service.get_order_by_id(db, order["id"]).status == "Processing"

    bad = dict(callback, razorpay_signature="0" * 64)
    db_order = order_service.get_order_by_id(db, order["id"])
    db_order.status = "Pending"
    db.commit()
    assert client.post(f"/api/payment/razorpay/callback?order_id={order['id']}", json=bad).status_code == 400


def test_checkout_validation(client, products):
    assert client.post("/api/checkout", json=CHECKOUT).status_code == 400
    add_bundle(client, products, count=3)
    resp = client.post("/api/checkout", json=CHECKOUT)
    assert resp.status_code == 400
    assert "at least 6" in resp.json()["detail"]
    assert client.post("/api/checkout", json=dict(CHECKOUT, payment_method="cash")).status_code == 422


def test_studio_coupons_and_rules(client):
    resp = client.post("/studio/coupons", json={"code": "new5", "discount_type": "fixed_amount", "discount_value": "5"})
    assert resp.status_code == 201
    assert resp.json()["code"] == "NEW5"
    assert client.post("/studio/coupons", json={"code": "NEW5", "discount_value": "5"}).status_code == 400
    listing = client.get("/studio/coupons").json()
    assert listing["total"] == 1
    assert listing["stats"]["total_coupons"] == 1

    rule = client.post("/studio/pricing/rules", json={
        "name": "Ship free", "rule_type": "free_shipping", "min_order_value": "499",
    })
    assert rule.status_code == 201
    assert client.put("/studio/pricing/rules/999", json={"name": "x"}).status_code == 404
    assert client.get("/studio/pricing/rules").headers["cache-control"].startswith("no-cache")


def test_studio_orders(client, db, cart):
    cart.add_bundle([ProductRef(id=str(i), name=f"P{i}") for i in range(6)], "A4")
    order = order_service.place_order(db, cart.state, "a@b.co", "Somewhere long enough", "phonepe")
    db.commit()

    assert client.get("/studio/orders?status=Pending").json()["count"] == 1
    resp = client.put(f"/studio/orders/{order.id}/status", json={"status": "Cancelled"})
    assert resp.json()["status"] == "Cancelled"
    assert client.put("/studio/orders/EVO-0/status", json={"status": "Shipped"}).status_code == 404
    assert client.get("/studio/dashboard").json()["total_orders"] == 1


def test_homepage(client, products):
    hero = client.put("/studio/homepage/hero", json={"headline": "Walls that talk"})
    assert hero.status_code == 200
    client.put("/studio/homepage/mega-deals", json=[{"buy": 10, "get": 4}, {"buy": 12, "get": 6, "active": False}])
    client.put("/studio/homepage/trending", json={"product_ids": [products[0].id, products[1].id]})

    home = client.get("/api/homepage").json()
    assert home["hero"]["headline"] == "Walls that talk"
    assert home["mega_deals"] == [{"buy": 10, "get": 4, "total": 14, "active": True}]
    assert {p["id"] for p in home["trending"]} == {products[0].id, products[1].id}


def test_payment_gateways_listed(client):
    gateways = client.get("/api/payment/gateways").json()["gateways"]
    assert [g["name"] for g in gateways] == ["razorpay", "phonepe"]
    assert gateways[1]["label"] == "PhonePe"


def test_hidden_products_cannot_be_bundled(client, db, products):
    products[3].is_active = False
    curated = curated_bundle_service.create(db, {"name": "Mixed", "product_ids": [p.id for p in products[:10]]})
    db.commit()

    assert add_bundle(client, products).status_code == 404
    assert client.post("/api/selection/toggle", json={"product_id": products[3].id}).status_code == 404

    resp = client.post(f"/api/cart/bundles/curated/{curated.id}", json={"poster_size": "A4"})
    assert resp.status_code == 201
    ids = {i["product"]["id"] for i in resp.json()["bundle"]["items"]}
    assert str(products[3].id) not in ids
    assert resp.json()["bundle"]["total_units"] == 9

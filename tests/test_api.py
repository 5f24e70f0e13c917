import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app
from services.inventory_ledger import get_ledger
from utils.auth_utils import get_current_user


@pytest.fixture
def client(session_factory, ledger, catalogue):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_current_user] = lambda: {"sub": "shopper-1"}
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _supply(client, catalogue, combination_id, quantity):
    response = client.post("/supplies/", json={
        "vendor_id": catalogue.vendor_id,
        "product_id": catalogue.shirt_id,
        "combination_id": combination_id,
        "quantity_supplied": quantity,
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_supply_then_check_availability(client, catalogue):
    supply = _supply(client, catalogue, catalogue.black_large_id, 12)

    response = client.get(f"/inventory/combinations/{catalogue.black_large_id}/availability", params={"quantity": 5})

    assert supply["quantity_supplied"] == 12
    assert response.status_code == 200
    assert response.json() == {
        "combination_id": catalogue.black_large_id,
        "requested": 5,
        "available": True,
        "in_stock": 12,
    }


def test_overdraw_answers_409_with_stock_details(client, catalogue):
    _supply(client, catalogue, catalogue.black_large_id, 12)

    response = client.post("/inventory/adjust", json={
        "combination_id": catalogue.black_large_id,
        "adjustment": -100,
        "change_type": "sale",
    })

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert (body["requested"], body["available"]) == (100, 12)


def test_manual_adjustment_without_note_is_a_bad_request(client, catalogue):
    response = client.post("/inventory/adjust", json={
        "combination_id": catalogue.black_large_id,
        "adjustment": 3,
    })

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_history_of_unknown_combination_is_404(client):
    response = client.get("/inventory/combinations/9999/history")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_combination_price(client, catalogue):
    response = client.get(f"/variants/combinations/{catalogue.red_small_id}/price")

    assert response.status_code == 200
    body = response.json()
    assert (body["base_price"], body["price_modifier"], body["total_price"]) == ("100.00", "1.50", "101.50")


def test_generate_combinations_endpoint(client, catalogue):
    response = client.post(f"/variants/products/{catalogue.shirt_id}/combinations/generate", json={})

    assert response.status_code == 201
    assert sorted(c["combination_name"] for c in response.json()) == ["Black-Small", "Red-Large"]
    assert all(c["stock"] == 0 for c in response.json())


def test_cart_checkout_and_cancel(client, catalogue):
    _supply(client, catalogue, catalogue.black_large_id, 4)

    added = client.post("/carts/me/items", json={
        "product_id": catalogue.shirt_id,
        "selected_variant_ids": [catalogue.large_id, catalogue.black_id],
        "quantity": 2,
    })
    assert added.status_code == 201
    assert added.json()["price"] == "102.50"

    validation = client.get("/carts/me/validate")
    assert validation.json()["valid"] is True

    checkout = client.post("/orders/checkout", json={})
    assert checkout.status_code == 201, checkout.text
    order = checkout.json()
    assert order["total_amount"] == "205.00"
    assert client.get("/carts/me").json()["items"] == []

    stock = client.get(f"/inventory/combinations/{catalogue.black_large_id}/availability").json()["in_stock"]
    assert stock == 2

    cancelled = client.post(f"/orders/{order['id']}/cancel", json={"reason": "Ordered twice"})
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert client.get(f"/inventory/combinations/{catalogue.black_large_id}/availability").json()["in_stock"] == 4


def test_checkout_with_short_stock_lists_the_issues(client, catalogue):
    client.post("/carts/me/items", json={"product_id": catalogue.tote_id, "quantity": 3})

    response = client.post("/orders/checkout", json={})

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "STOCK_UNAVAILABLE"
    assert body["issues"][0]["product_name"] == "Tote Bag"
    assert body["issues"][0]["available"] == 0


def test_wishlist_move_to_cart(client, catalogue):
    saved = client.post("/wishlists/me/items", json={
        "product_id": catalogue.shirt_id,
        "selected_variant_ids": [catalogue.red_id, catalogue.small_id],
    }).json()

    moved = client.post(f"/wishlists/me/items/{saved['id']}/move-to-cart")

    assert moved.status_code == 200
    assert moved.json()["price"] == "105.00"
    assert client.get("/wishlists/me").json()["items"] == []
    assert client.get("/carts/me").json()["total_items"] == 1


def test_supply_lookup_and_product_history(client, catalogue):
    supply = _supply(client, catalogue, catalogue.red_small_id, 6)
    client.post("/inventory/adjust", json={
        "combination_id": catalogue.red_small_id,
        "adjustment": -1,
        "change_type": "manual_adjustment",
        "note": "Damaged in storage",
    })

    fetched = client.get(f"/supplies/{supply['id']}")
    history = client.get(f"/inventory/products/{catalogue.shirt_id}/history").json()

    assert fetched.json()["combination_id"] == catalogue.red_small_id
    assert client.get("/supplies/9999").status_code == 404
    assert [(h["change_type"], h["change_amount"]) for h in history] == [("manual_adjustment", -1), ("supply", 6)]
    assert client.get(f"/inventory/products/{catalogue.tote_id}/history").json() == []


def test_supply_summary_endpoint(client, catalogue):
    _supply(client, catalogue, catalogue.black_large_id, 4)
    _supply(client, catalogue, catalogue.red_small_id, 5)

    response = client.get("/supplies/summary")
    past = client.get("/supplies/summary", params={"end_date": "2001-01-01T00:00:00"})

    assert response.status_code == 200
    body = response.json()
    assert (body["total_supplied"], body["total_products"], body["total_vendors"]) == (9, 1, 1)
    assert body["top_products"] == [
        {"product_id": catalogue.shirt_id, "product_name": "Ankara Shirt", "product_sku": "ANK-001", "total_quantity": 9},
    ]
    assert body["top_vendors"][0]["business_name"] == "Adire House"
    assert past.json()["total_supplied"] == 0


def test_combination_stock_endpoints(client, catalogue):
    _supply(client, catalogue, catalogue.red_small_id, 3)

    everything = client.get("/inventory/combinations").json()
    vendor = client.get(f"/inventory/vendors/{catalogue.vendor_id}/combinations", params={"limit": 1})
    other = client.get(f"/inventory/vendors/{catalogue.pending_vendor_id}/combinations")

    assert everything["total"] == 3
    red_small = next(i for i in everything["items"] if i["combination_id"] == catalogue.red_small_id)
    assert red_small["stock"] == 3
    assert red_small["price_modifier"] == "1.50"
    assert red_small["sku_suffix"] == "RESM"
    assert red_small["product"]["vendor_name"] == "Adire House"
    assert vendor.json()["total"] == 3
    assert len(vendor.json()["items"]) == 1
    assert other.json() == {"total": 0, "items": []}
    assert client.get("/inventory/vendors/9999/combinations").status_code == 404


def test_history_across_products_endpoint(client, catalogue):
    _supply(client, catalogue, catalogue.black_large_id, 7)
    client.post("/inventory/adjust", json={
        "combination_id": catalogue.black_large_id,
        "adjustment": -2,
        "change_type": "sale",
    })

    page = client.get("/inventory/history", params={"product_id": catalogue.shirt_id}).json()
    tote = client.get("/inventory/history", params={"product_id": catalogue.tote_id}).json()

    assert page["total"] == 2
    assert [(h["change_type"], h["change_amount"]) for h in page["items"]] == [("sale", -2), ("supply", 7)]
    assert page["items"][0]["product_name"] == "Ankara Shirt"
    assert page["items"][0]["combination_name"] == "Black-Large"
    assert page["items"][0]["sku_suffix"] == "BLLA"
    assert tote == {"total": 0, "items": []}

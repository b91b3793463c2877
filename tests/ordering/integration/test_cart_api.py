"""Integration tests for Cart API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.errors import register_error_handlers
from ordering.api.routes import cart_router
from ordering.cart.cart import Cart
from ordering.catalogue.coupon import Coupon
from protean import current_domain


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def headers(shopper_id):
    return {"X-User-Id": shopper_id}


def _add_item(client, headers, listing, quantity=1):
    """Helper: POST /cart."""
    return client.post(
        "/cart",
        json={
            "product_id": listing["product_id"],
            "variant_id": listing["variant_id"],
            "size_id": listing["size_id"],
            "quantity": quantity,
        },
        headers=headers,
    )


class TestViewCartEndpoint:
    def test_view_creates_an_empty_cart(self, client, headers, shopper_id):
        response = client.get("/cart", headers=headers)
        assert response.status_code == 200

        body = response.json()
        assert body["shopper_id"] == shopper_id
        assert body["items"] == []
        assert body["total"] == 0.0

    def test_view_requires_a_shopper(self, client):
        response = client.get("/cart")
        assert response.status_code == 401
        assert "error" in response.json()


class TestCartItemEndpoints:
    def test_add_item_returns_priced_cart(self, client, headers, listing):
        response = _add_item(client, headers, listing, quantity=3)
        assert response.status_code == 200

        body = response.json()
        (item,) = body["items"]
        assert item["price"] == 9.0
        assert item["total_price"] == 27.0
        assert body["sub_total"] == 27.0
        assert body["total"] == 27.0

    def test_add_more_than_stock_is_a_conflict(self, client, headers, listing):
        response = _add_item(client, headers, listing, quantity=6)
        assert response.status_code == 409

    def test_add_zero_is_a_bad_request(self, client, headers, listing):
        response = _add_item(client, headers, listing, quantity=0)
        assert response.status_code == 400

    def test_add_unknown_product_is_not_found(self, client, headers, listing):
        response = _add_item(client, headers, {**listing, "product_id": "no-such-product"})
        assert response.status_code == 404

    def test_update_quantity(self, client, headers, listing):
        item_id = _add_item(client, headers, listing, quantity=3).json()["items"][0]["id"]

        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 2}, headers=headers)
        assert response.status_code == 200
        assert response.json()["sub_total"] == 18.0

    def test_update_beyond_stock_leaves_cart_unchanged(self, client, headers, listing):
        body = _add_item(client, headers, listing, quantity=3).json()
        item_id = body["items"][0]["id"]

        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 6}, headers=headers)
        assert response.status_code == 409

        cart = current_domain.repository_for(Cart).get(body["id"])
        assert cart.items[0].quantity == 3
        assert cart.sub_total == 27.0

    def test_remove_item(self, client, headers, listing):
        item_id = _add_item(client, headers, listing).json()["items"][0]["id"]

        response = client.delete(f"/cart/items/{item_id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_remove_unknown_item_is_not_found(self, client, headers, listing):
        _add_item(client, headers, listing)
        response = client.delete("/cart/items/no-such-item", headers=headers)
        assert response.status_code == 404


class TestClearAndCouponEndpoints:
    def test_clear_keeps_an_empty_cart(self, client, headers, listing):
        cart_id = _add_item(client, headers, listing, quantity=2).json()["id"]

        response = client.delete("/cart", headers=headers)
        assert response.status_code == 200
        assert response.json()["id"] == cart_id
        assert response.json()["total"] == 0.0

        assert client.get("/cart", headers=headers).json()["id"] == cart_id

    def test_apply_coupon(self, client, headers, store, listing):
        current_domain.repository_for(Coupon).add(Coupon(code="TENOFF", store_id=str(store.id), discount=10.0))
        _add_item(client, headers, listing, quantity=2)

        response = client.post("/cart/coupon", json={"code": "TENOFF"}, headers=headers)
        assert response.status_code == 200

        body = response.json()
        assert body["coupon"]["code"] == "TENOFF"
        assert body["discount_total"] == 1.8
        assert body["total"] == 16.2

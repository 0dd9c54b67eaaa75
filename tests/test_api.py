"""Tests for the HTTP API."""

from collections.abc import AsyncIterator

import fastapi
import httpx
import pytest

from shopkeep.api import create_app, status_for
from shopkeep.api._fastapi import _on_invalid_request, _on_shop_error
from shopkeep.errors import CheckoutTimeout, DiscountExpired, ShopError, Unauthenticated

from support import stock_of, used_count

ACME_HEADERS = {"X-Tenant-Id": "acme"}


@pytest.fixture
async def client(settings, service) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(settings.with_api_tokens({"secret-globex": "globex"}), service=service)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://shop") as client:
        yield client


def test_status_mapping():
    assert status_for(Unauthenticated()) == 401
    assert status_for(DiscountExpired()) == 409
    assert status_for(CheckoutTimeout()) == 504
    assert status_for(ShopError("SOMETHING", "else")) == 500


@pytest.mark.parametrize("handler", [_on_shop_error, _on_invalid_request])
async def test_error_handlers_pass_other_exceptions_through(handler):
    request = fastapi.Request({"type": "http", "method": "GET", "path": "/", "headers": []})

    with pytest.raises(ValueError, match="unrelated"):
        await handler(request, ValueError("unrelated"))


# ═══════════════════════════════════════════════════════════════════════════════
# Tenancy
# ═══════════════════════════════════════════════════════════════════════════════


async def test_request_without_tenant_is_rejected(client):
    response = await client.get("/orders")

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHENTICATED"


async def test_bearer_token_selects_tenant(client):
    response = await client.get("/orders/available-coupons", headers={"Authorization": "Bearer secret-globex"})

    assert response.status_code == 200
    assert [c["code"] for c in response.json()] == ["SALE10"]
    assert response.json()[0]["amount"] == "2.00"


async def test_unknown_bearer_token_is_rejected(client):
    response = await client.get(
        "/orders", headers={"Authorization": "Bearer nope", "X-Tenant-Id": "acme"}
    )
    assert response.status_code == 401


# ═══════════════════════════════════════════════════════════════════════════════
# Preview / checkout
# ═══════════════════════════════════════════════════════════════════════════════


async def test_preview(client, service, acme):
    response = await client.post(
        "/orders/preview",
        json={"items": [{"productId": 1, "quantity": 1}, {"productId": 2, "quantity": 2}], "couponCode": "SALE10"},
        headers=ACME_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["subtotal"] == "138.90"
    assert body["discountAmount"] == "10.00"
    assert body["finalAmount"] == "128.90"
    assert body["couponApplied"] is True
    assert body["lines"][1] == {
        "productId": 2,
        "productName": "Wireless Mouse",
        "quantity": 2,
        "unitPrice": "24.50",
        "lineTotal": "49.00",
    }
    assert await stock_of(service, acme, 1) == 10


async def test_preview_reports_expired_coupon(client):
    response = await client.post(
        "/orders/preview",
        json={"items": [{"productId": 1, "quantity": 1}], "couponCode": "SUMMER"},
        headers=ACME_HEADERS,
    )

    body = response.json()
    assert response.status_code == 200
    assert body["couponApplied"] is False
    assert body["couponMessage"] == "Coupon has expired"
    assert body["finalAmount"] == "89.90"


async def test_checkout_creates_order(client, service, acme):
    response = await client.post(
        "/orders/checkout",
        json={"items": [{"productId": 1, "quantity": 2}], "couponCode": "SALE10", "customerId": "c-100"},
        headers=ACME_HEADERS,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["finalAmount"] == "169.80"
    assert body["message"] == "Order created successfully"
    assert await stock_of(service, acme, 1) == 8
    assert await used_count(service, acme, 1) == 1

    order = await client.get(f"/orders/{body['orderId']}", headers=ACME_HEADERS)
    assert order.status_code == 200
    assert order.json()["customerId"] == "c-100"
    assert order.json()["appliedCode"] == "SALE10"
    assert order.json()["status"] == "new"
    assert order.json()["lines"][0]["unitPrice"] == "89.90"


async def test_checkout_out_of_stock(client, service, acme):
    response = await client.post(
        "/orders/checkout",
        json={"items": [{"productId": 3, "quantity": 4}]},
        headers=ACME_HEADERS,
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "INSUFFICIENT_STOCK",
        "message": "Insufficient stock for product 'USB-C Hub'. Available: 3, Requested: 4",
    }
    assert await stock_of(service, acme, 3) == 3


async def test_checkout_unknown_product(client):
    response = await client.post(
        "/orders/checkout",
        json={"items": [{"productId": 77, "quantity": 1}]},
        headers=ACME_HEADERS,
    )

    assert response.status_code == 404
    assert response.json()["error"] == "PRODUCT_NOT_FOUND"


async def test_checkout_empty_cart(client):
    response = await client.post("/orders/checkout", json={"items": []}, headers=ACME_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_CART"


async def test_malformed_body(client):
    response = await client.post(
        "/orders/checkout",
        json={"items": [{"productId": "one", "quantity": 1}]},
        headers=ACME_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"


@pytest.mark.parametrize("path", ["/orders/preview", "/orders/checkout"])
@pytest.mark.parametrize("item", [
    {"productId": 1, "quantity": 10**19},
    {"productId": 1, "quantity": 10_001},
    {"productId": 10**19, "quantity": 1},
])
async def test_out_of_range_cart_item(client, service, acme, path, item):
    response = await client.post(path, json={"items": [item]}, headers=ACME_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"
    assert await stock_of(service, acme, 1) == 10


# ═══════════════════════════════════════════════════════════════════════════════
# Orders / coupons
# ═══════════════════════════════════════════════════════════════════════════════


async def test_unknown_order(client):
    response = await client.get("/orders/999", headers=ACME_HEADERS)

    assert response.status_code == 404
    assert response.json() == {"error": "ORDER_NOT_FOUND", "message": "Order 999 not found"}


async def test_order_of_another_tenant_is_not_found(client):
    created = await client.post(
        "/orders/checkout",
        json={"items": [{"productId": 1, "quantity": 1}]},
        headers={"Authorization": "Bearer secret-globex"},
    )
    order_id = created.json()["orderId"]

    response = await client.get(f"/orders/{order_id}", headers=ACME_HEADERS)
    assert response.status_code == 404


async def test_list_orders_with_camel_case_query(client):
    for qty in (1, 2, 3):
        await client.post(
            "/orders/checkout",
            json={"items": [{"productId": 2, "quantity": qty}], "customerId": "c-200"},
            headers=ACME_HEADERS,
        )

    response = await client.get(
        "/orders",
        params={"search": "bob", "sortBy": "amount", "sortOrder": "asc", "pageSize": 2, "minAmount": "30"},
        headers=ACME_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["totalCount"] == 2
    assert body["totalPages"] == 1
    assert [o["finalAmount"] for o in body["items"]] == ["49.00", "73.50"]
    assert body["items"][0]["customerName"] == "Bob Tran"
    assert body["items"][0]["itemCount"] == 2


async def test_list_orders_rejects_bad_page_size(client):
    response = await client.get("/orders", params={"pageSize": 500}, headers=ACME_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_REQUEST"


async def test_available_coupons(client):
    response = await client.get("/orders/available-coupons", headers=ACME_HEADERS)

    assert response.status_code == 200
    coupons = response.json()
    assert [c["code"] for c in coupons] == ["SALE10", "WELCOME5"]
    assert coupons[0]["usageLimit"] == 5
    assert coupons[0]["usedCount"] == 0
    assert coupons[1]["usageLimit"] is None

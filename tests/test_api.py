"""HTTP API tests"""

import pytest

from storefront import database
from storefront.jobs.celery_app import celery_app


def _order_payload(catalog, **overrides):
    payload = {
        "customer_name": "Ann",
        "customer_phone": "0912345678",
        "store_number": "S001",
        "store_name": "Main Street",
        "items": [
            {"product_id": str(catalog.widget_id), "flavor": "Red", "quantity": 2},
            {"upsell_product_id": str(catalog.case_id), "is_upsell": True, "quantity": 1},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready_checks_database_and_broker(client, session_factory, monkeypatch):
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    monkeypatch.setattr(celery_app.control, "ping", lambda timeout: [{"worker@host": {"ok": "pong"}}])

    response = await client.get("/health/ready")

    assert response.json() == {"status": "ready", "checks": {"database": "ok", "redis": "ok"}}


@pytest.mark.asyncio
async def test_ready_reports_unreachable_broker(client, session_factory, monkeypatch):
    def ping(timeout):
        raise ConnectionError("redis unreachable")

    monkeypatch.setattr(database, "SessionLocal", session_factory)
    monkeypatch.setattr(celery_app.control, "ping", ping)

    data = (await client.get("/health/ready")).json()

    assert data["status"] == "not_ready"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["redis"] == "failed: redis unreachable"


@pytest.mark.asyncio
async def test_create_order(client, catalog, notifier):
    response = await client.post("/orders", json=_order_payload(catalog))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["subtotal_amount"] == 250
    assert data["shipping_fee"] == 60
    assert data["total_amount"] == 310
    assert len(data["verification_code"]) == 6
    assert [item["product_name"] for item in data["items"]] == ["Widget", "Carry Case"]
    assert data["items"][1]["is_upsell"] is True
    assert notifier.calls == [data["order_number"]]


@pytest.mark.asyncio
async def test_create_order_ignores_client_prices(client, catalog):
    payload = _order_payload(catalog, total_amount=1)
    payload["items"][0]["unit_price"] = 1

    response = await client.post("/orders", json=payload)

    assert response.status_code == 201
    assert response.json()["items"][0]["unit_price"] == 100


@pytest.mark.asyncio
async def test_create_order_out_of_stock(client, catalog):
    payload = _order_payload(catalog, items=[{"product_id": str(catalog.widget_id), "flavor": "Blue", "quantity": 1}])

    response = await client.post("/orders", json=payload)

    assert response.status_code == 409
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    assert response.json()["retryable"] is False


@pytest.mark.asyncio
async def test_create_order_unknown_flavor(client, catalog):
    payload = _order_payload(catalog, items=[{"product_id": str(catalog.widget_id), "flavor": "Purple", "quantity": 1}])

    response = await client.post("/orders", json=payload)

    assert response.status_code == 404
    assert response.json()["code"] == "FLAVOR_NOT_FOUND"
    assert "Red, Blue" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_order_empty_cart(client, catalog):
    response = await client.post("/orders", json=_order_payload(catalog, items=[]))

    assert response.status_code == 400
    assert response.json()["code"] == "EMPTY_CART"


@pytest.mark.asyncio
async def test_create_order_bad_quantity(client, catalog):
    payload = _order_payload(catalog, items=[{"product_id": str(catalog.plain_id), "quantity": 0}])

    response = await client.post("/orders", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_QUANTITY"


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [1.5, "abc", True, "2", None])
async def test_create_order_non_integer_quantity(client, catalog, db_reader, quantity):
    payload = _order_payload(catalog, items=[{"product_id": str(catalog.plain_id), "quantity": quantity}])

    response = await client.post("/orders", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_QUANTITY"
    assert await db_reader.order_count() == 0
    assert await db_reader.stock(catalog.plain_id, "standard") == 10


@pytest.mark.asyncio
async def test_create_order_missing_customer(client, catalog):
    payload = _order_payload(catalog)
    del payload["customer_name"]

    response = await client.post("/orders", json=payload)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_order_with_coupon(client, catalog, coupons):
    payload = _order_payload(
        catalog,
        items=[{"product_id": str(catalog.plain_id), "quantity": 5}],
        coupon_code="welcome10",
    )

    response = await client.post("/orders", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["coupon_code"] == "WELCOME10"
    assert data["discount_amount"] == 100
    assert data["total_amount"] == 960


@pytest.mark.asyncio
async def test_create_order_rejected_coupon(client, catalog, coupons):
    response = await client.post("/orders", json=_order_payload(catalog, coupon_code="OLD"))

    assert response.status_code == 400
    assert response.json()["code"] == "COUPON_EXPIRED"


@pytest.mark.asyncio
async def test_verify_and_query(client, catalog):
    created = (await client.post("/orders", json=_order_payload(catalog))).json()
    lookup = {
        "order_number": created["order_number"],
        "verification_code": created["verification_code"].lower(),
    }

    verified = await client.post("/orders/verify", json=lookup)
    assert verified.status_code == 200
    assert verified.json() == {
        "order_number": created["order_number"],
        "customer_name": "Ann",
        "total_amount": 310,
    }

    response = await client.post("/orders/query", json=lookup)

    assert response.status_code == 200
    data = response.json()
    assert data["is_verified"] is True
    assert data["status"] == "pending"
    assert data["status_text"] == "Pending"
    assert data["store_name"] == "Main Street"
    assert len(data["items"]) == 2


@pytest.mark.asyncio
async def test_query_wrong_code(client, catalog):
    created = (await client.post("/orders", json=_order_payload(catalog))).json()

    response = await client.post(
        "/orders/query",
        json={"order_number": created["order_number"], "verification_code": "WRONG1"},
    )

    assert response.status_code == 404
    assert response.json()["code"] == "ORDER_NOT_FOUND"


@pytest.mark.asyncio
async def test_validate_coupon(client, coupons, db_reader):
    response = await client.post(
        "/coupons/validate",
        json={"code": "save50", "customer_phone": "0912345678", "subtotal": 1500},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["coupon"]["code"] == "SAVE50"
    assert data["coupon"]["type"] == "fixed_amount"
    assert data["discount_amount"] == 50
    assert data["free_shipping"] is False
    assert (await db_reader.coupon("SAVE50")).used_count == 0


@pytest.mark.asyncio
async def test_validate_coupon_minimum(client, coupons):
    response = await client.post(
        "/coupons/validate",
        json={"code": "SAVE50", "customer_phone": "0912345678", "subtotal": 500},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "MINIMUM_NOT_MET"


@pytest.mark.asyncio
async def test_validate_unknown_coupon(client, coupons):
    response = await client.post(
        "/coupons/validate",
        json={"code": "NOPE", "customer_phone": "0912345678", "subtotal": 500},
    )

    assert response.status_code == 404

"""
Checkout: totals, price snapshots, stock checks and the no-partial-write rule.
"""
import re

import pytest
from sqlalchemy import func, select

from storefront.db import catalog_ops
from storefront.models.catalog import Product, ProductVariant
from storefront.models.order import Order, OrderItem
from tests.factories import make_product, order_payload, read_quantity

ORDER_NUMBER = re.compile(r"^SS-\d{13}-[0-9A-F]{8}$")


async def _count(sessions, model) -> int:
    async with sessions() as session:
        return await session.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_create_order_totals_and_snapshots(client, sessions):
    async with sessions() as s:
        tee = await make_product(s, name="Basic Tee", price="10.00", quantity=10)
        cap = await make_product(s, name="Cap", price="5.50", quantity=2)

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": tee.id, "quantity": 3},
            {"productId": cap.id, "quantity": 2},
        ),
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    assert body["error"] is None
    order = body["data"]
    assert ORDER_NUMBER.match(order["orderNumber"])
    assert order["status"] == "new"
    assert order["totalAmount"] == 41.0
    assert order["stockDeducted"] is False
    prices = {item["productId"]: item["unitPrice"] for item in order["items"]}
    assert prices == {tee.id: 10.0, cap.id: 5.5}
    first = order["items"][0]
    assert first["product"]["name"] == "Basic Tee"
    # Optional fields are present and null, not omitted
    assert first["productVariant"] is None
    assert first["selectedColor"] is None

    # Stock is only taken on payment
    assert await read_quantity(sessions, Product, tee.id) == 10


@pytest.mark.asyncio
async def test_price_snapshot_survives_price_change(client, sessions, admin_headers):
    async with sessions() as s:
        tee = await make_product(s, price="10.00")
    r = await client.post("/api/orders", json=order_payload({"productId": tee.id, "quantity": 1}))
    order_id = r.json()["data"]["id"]

    r = await client.put(f"/api/admin/products/{tee.id}", json={"price": "12.50"}, headers=admin_headers)
    assert r.status_code == 200, r.text

    r = await client.get(f"/api/admin/orders/{order_id}", headers=admin_headers)
    assert r.json()["data"]["items"][0]["unitPrice"] == 10.0
    assert r.json()["data"]["totalAmount"] == 10.0


@pytest.mark.asyncio
async def test_insufficient_stock_persists_nothing(client, sessions):
    async with sessions() as s:
        tee = await make_product(s, name="Basic Tee", quantity=10)
        cap = await make_product(s, name="Cap", quantity=10)

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": cap.id, "quantity": 1},
            {"productId": tee.id, "quantity": 11},
        ),
    )

    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Insufficient inventory"
    assert body["error"] == 'Product "Basic Tee" only has 10 units available, but 11 were requested'
    assert await _count(sessions, Order) == 0
    assert await _count(sessions, OrderItem) == 0


@pytest.mark.asyncio
async def test_lines_for_the_same_pool_are_checked_together(client, sessions):
    async with sessions() as s:
        tee = await make_product(s, quantity=10)

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": tee.id, "quantity": 6},
            {"productId": tee.id, "quantity": 6},
        ),
    )

    assert r.status_code == 400
    assert "but 12 were requested" in r.json()["error"]
    assert await _count(sessions, Order) == 0


@pytest.mark.asyncio
async def test_unknown_inactive_or_sold_out_product_is_rejected(client, sessions):
    async with sessions() as s:
        hidden = await make_product(s, name="Hidden", is_active=False)
        gone = await make_product(s, name="Gone", quantity=0)

    for product_id in (hidden.id, gone.id, 9999):
        r = await client.post("/api/orders", json=order_payload({"productId": product_id, "quantity": 1}))
        assert r.status_code == 400, product_id
        assert r.json()["message"] == "Product not found"

    assert await _count(sessions, Order) == 0


@pytest.mark.asyncio
async def test_variant_line_checks_variant_stock(client, sessions):
    async with sessions() as s:
        tee = await make_product(s, quantity=0, variants=[("Red", "M", 3), ("Blue", "L", 0)])
    red_m = next(v for v in tee.variants if v.color == "Red")

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": tee.id, "quantity": 2, "selectedColor": "Red", "selectedSize": "M"}
        ),
    )
    assert r.status_code == 201, r.text
    item = r.json()["data"]["items"][0]
    assert item["productVariantId"] == red_m.id
    assert item["productVariant"]["sku"] == "BASIC-TEE-RED-M"
    assert item["selectedColor"] == "Red"
    assert item["selectedSize"] == "M"

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": tee.id, "quantity": 1, "selectedColor": "Blue", "selectedSize": "L"}
        ),
    )
    assert r.status_code == 400
    assert r.json()["error"] == (
        'Product "Basic Tee" in Blue L only has 0 units available, but 1 were requested'
    )


@pytest.mark.asyncio
async def test_unknown_colour_size_creates_an_empty_variant(client, sessions):
    async with sessions() as s:
        tee = await make_product(s, name="Basic Tee", quantity=5)

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": tee.id, "quantity": 1, "selectedColor": "Green", "selectedSize": "XL"}
        ),
    )

    assert r.status_code == 400
    async with sessions() as s:
        variant = (
            await s.execute(select(ProductVariant).where(ProductVariant.product_id == tee.id))
        ).scalar_one()
    assert (variant.color, variant.size, variant.quantity) == ("Green", "XL", 0)
    assert variant.sku == "BASIC-TEE-GREEN-XL"
    assert await _count(sessions, Order) == 0


@pytest.mark.asyncio
async def test_selection_matches_an_existing_variant_ignoring_case(client, sessions):
    async with sessions() as s:
        tee = await make_product(s, name="Basic Tee", quantity=0, variants=[("Red", "M", 3)])
    red_m = tee.variants[0]

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": tee.id, "quantity": 1, "selectedColor": "red", "selectedSize": "m"}
        ),
    )

    assert r.status_code == 201, r.text
    item = r.json()["data"]["items"][0]
    assert item["productVariantId"] == red_m.id
    assert item["selectedColor"] == "red"
    assert await _count(sessions, ProductVariant) == 1


@pytest.mark.asyncio
async def test_variant_sku_taken_by_another_product_is_a_bad_request(client, sessions):
    async with sessions() as s:
        await make_product(s, name="Basic Tee", quantity=0, variants=[("Red", "M", 3)])
        twin = await make_product(s, name="basic  tee", quantity=5)

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": twin.id, "quantity": 1, "selectedColor": "Red", "selectedSize": "M"}
        ),
    )

    assert r.status_code == 400, r.text
    assert r.json()["success"] is False
    assert "BASIC-TEE-RED-M" in r.json()["error"]
    assert await _count(sessions, ProductVariant) == 1
    assert await _count(sessions, Order) == 0


@pytest.mark.asyncio
async def test_variant_created_concurrently_is_reused(client, sessions, monkeypatch):
    async with sessions() as s:
        tee = await make_product(s, name="Tee", quantity=0, variants=[("Red", "M", 3)])
        cap = await make_product(s, name="Cap", quantity=5)
    red_m = tee.variants[0]

    # The first lookup misses, as if another request inserted the row just after
    original = catalog_ops._select_variant
    calls = []

    async def late_select(db, product_id, color, size):
        calls.append((color, size))
        if len(calls) == 1:
            return None
        return await original(db, product_id, color, size)

    monkeypatch.setattr(catalog_ops, "_select_variant", late_select)

    r = await client.post(
        "/api/orders",
        json=order_payload(
            {"productId": cap.id, "quantity": 1},
            {"productId": tee.id, "quantity": 1, "selectedColor": "Red", "selectedSize": "M"},
        ),
    )

    assert r.status_code == 201, r.text
    items = r.json()["data"]["items"]
    assert [item["productVariantId"] for item in items] == [None, red_m.id]
    assert r.json()["data"]["totalAmount"] == 20.0
    assert len(calls) == 2
    assert await _count(sessions, ProductVariant) == 1
    assert await _count(sessions, Order) == 1


@pytest.mark.asyncio
async def test_blank_selection_draws_from_product_stock(client, sessions):
    async with sessions() as s:
        tee = await make_product(s, quantity=5)

    r = await client.post(
        "/api/orders",
        json=order_payload({"productId": tee.id, "quantity": 2, "selectedColor": " ", "selectedSize": ""}),
    )

    assert r.status_code == 201, r.text
    item = r.json()["data"]["items"][0]
    assert item["productVariantId"] is None
    assert item["selectedColor"] is None
    assert await _count(sessions, ProductVariant) == 0


@pytest.mark.asyncio
async def test_snake_case_input_is_accepted(client, sessions):
    async with sessions() as s:
        tee = await make_product(s)

    r = await client.post(
        "/api/orders",
        json={
            "customer_name": "Jane Doe",
            "customer_email": "jane@example.com",
            "customer_phone": "+1 555 0100",
            "delivery_address": "1 Main Street, Springfield",
            "items": [{"product_id": tee.id, "quantity": 1}],
        },
    )
    assert r.status_code == 201, r.text

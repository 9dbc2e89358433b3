"""
Envelope, health and the small pure helpers.
"""
import re

import pytest

from storefront.core.exceptions import InsufficientInventory
from storefront.db.catalog_ops import build_sku, derive_status
from storefront.db.order_ops import generate_order_number
from storefront.models.catalog import ProductStatus


def test_build_sku_normalises_whitespace_and_case():
    assert build_sku("Basic Tee", "navy  blue", " xl ") == "BASIC-TEE-NAVY-BLUE-XL"


@pytest.mark.parametrize(
    "product_qty, variant_qtys, expected",
    [
        (0, [], ProductStatus.SOLD_OUT),
        (1, [], ProductStatus.AVAILABLE),
        (0, [0, 0], ProductStatus.SOLD_OUT),
        (0, [0, 2], ProductStatus.AVAILABLE),
    ],
)
def test_derive_status(product_qty, variant_qtys, expected):
    assert derive_status(product_qty, variant_qtys) == expected


def test_order_number_format():
    first = generate_order_number("SS")
    second = generate_order_number("SS")
    assert re.match(r"^SS-\d{13}-[0-9A-F]{8}$", first)
    assert first != second


def test_insufficient_inventory_message():
    exc = InsufficientInventory("Tee", available=1, requested=3, color="Red", size="M")
    assert exc.status_code == 400
    assert exc.error == 'Product "Tee" in Red M only has 1 units available, but 3 were requested'


@pytest.mark.asyncio
async def test_validation_errors_use_the_envelope(client):
    r = await client.post(
        "/api/orders",
        json={
            "customerName": "J",
            "customerEmail": "not-an-email",
            "customerPhone": "12345678",
            "deliveryAddress": "1 Main Street, Springfield",
            "items": [],
        },
    )

    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Validation error"
    assert {d["field"] for d in body["data"]} == {"customerName", "customerEmail", "items"}
    assert set(body) >= {"success", "message", "data", "error", "timestamp"}


@pytest.mark.asyncio
async def test_unknown_route_uses_the_envelope(client):
    r = await client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_health_and_root(client, settings):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["dependencies"] == {"database": "ok", "redis": "ok"}

    r = await client.get("/")
    assert r.json() == {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}

import pytest

from tests.factories import make_product, order_payload


@pytest.mark.asyncio
async def test_dashboard_counts_and_revenue(client, sessions, admin_headers):
    async with sessions() as s:
        tee = await make_product(s, name="Tee", price="10.00", quantity=50)
        await make_product(s, name="Gone", quantity=0)
        await make_product(s, name="Retired", is_active=False)

    order_ids = []
    for qty in (1, 2, 3, 4, 5, 6):
        r = await client.post("/api/orders", json=order_payload({"productId": tee.id, "quantity": qty}))
        order_ids.append(r.json()["data"]["id"])

    # 1 and 2 stay new; 3 and 4 paid; 5 and 6 ready
    for order_id in order_ids[2:]:
        await client.put(f"/api/admin/orders/{order_id}/status", json={"status": "paid"}, headers=admin_headers)
    for order_id in order_ids[4:]:
        await client.put(
            f"/api/admin/orders/{order_id}/status", json={"status": "ready_for_delivery"}, headers=admin_headers
        )

    r = await client.get("/api/admin/dashboard", headers=admin_headers)

    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["statistics"] == {
        "totalOrders": 6,
        "newOrders": 2,
        "paidOrders": 2,
        "readyOrders": 2,
        "totalRevenue": 180.0,
        "totalProducts": 3,
        "activeProducts": 2,
        "soldOutProducts": 1,
    }
    assert len(data["recentOrders"]) == 5
    assert data["recentOrders"][0]["id"] == order_ids[-1]


@pytest.mark.asyncio
async def test_admin_order_listing(client, sessions, admin_headers):
    async with sessions() as s:
        tee = await make_product(s, quantity=50)
    ids = []
    for _ in range(3):
        r = await client.post("/api/orders", json=order_payload({"productId": tee.id, "quantity": 1}))
        ids.append(r.json()["data"]["id"])
    await client.put(f"/api/admin/orders/{ids[0]}/status", json={"status": "paid"}, headers=admin_headers)

    r = await client.get("/api/admin/orders", params={"limit": 2}, headers=admin_headers)
    body = r.json()
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["totalPages"] == 2
    assert [o["id"] for o in body["data"]] == [ids[2], ids[1]]

    r = await client.get("/api/admin/orders", params={"status": "paid"}, headers=admin_headers)
    assert [o["id"] for o in r.json()["data"]] == [ids[0]]

    r = await client.get("/api/admin/orders/9999", headers=admin_headers)
    assert r.status_code == 404

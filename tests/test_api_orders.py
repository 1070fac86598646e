"""
HTTP tests for the order endpoints.
"""
from decimal import Decimal


def order_body(catalog, **overrides):
    body = {
        "customer_name": "Juan Dela Cruz",
        "phone": "09171234567",
        "address": "123 Rizal St.",
        "barangay": "San Isidro",
        "items": [
            {"product_id": str(catalog.pipe_id), "quantity": 2},
            {"product_id": str(catalog.wire_id), "quantity": 1},
        ],
    }
    body.update(overrides)
    return body


def place(client, catalog, headers=None, **overrides):
    resp = client.post("/api/v1/orders", json=order_body(catalog, **overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def patch_status(client, headers, order_id, status, note=None):
    return client.patch(
        f"/api/v1/orders/{order_id}/status",
        json={"status": status, "note": note},
        headers=headers,
    )


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


def test_place_guest_order(client, catalog, notifier):
    data = place(client, catalog)

    assert data["status"] == "pending"
    assert Decimal(data["total_amount"]) == Decimal("1371.00")
    assert data["customer_id"] is None
    assert data["order_number"].startswith("ORD-")
    assert [e["to_status"] for e in data["timeline"]] == ["pending"]
    assert notifier.statuses == ["pending"]


def test_place_order_as_customer(client, catalog, customer_headers):
    data = place(client, catalog, headers=customer_headers)
    assert data["customer_id"] == "customer-42"
    assert data["timeline"][0]["note"] == "Order placed by registered customer"


def test_place_order_validation(client, catalog):
    resp = client.post("/api/v1/orders", json=order_body(catalog, items=[]))
    assert resp.status_code == 400
    assert resp.json()["code"] == "EMPTY_ORDER"

    bad_qty = order_body(catalog, items=[{"product_id": str(catalog.pipe_id), "quantity": 0}])
    resp = client.post("/api/v1/orders", json=bad_qty)
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_QUANTITY"

    unavailable = order_body(catalog, items=[{"product_id": str(catalog.cement_id), "quantity": 1}])
    resp = client.post("/api/v1/orders", json=unavailable)
    assert resp.status_code == 400
    assert resp.json()["code"] == "PRODUCT_UNAVAILABLE"

    too_many = order_body(catalog, items=[{"product_id": str(catalog.wire_id), "quantity": 11}])
    resp = client.post("/api/v1/orders", json=too_many)
    assert resp.status_code == 400
    assert resp.json()["code"] == "INSUFFICIENT_STOCK"
    assert resp.json()["available_stock"] == 10

    resp = client.post("/api/v1/orders", json=order_body(catalog, phone="12345"))
    assert resp.status_code == 422


def test_track_and_timeline(client, catalog, admin_headers):
    data = place(client, catalog)
    number = data["order_number"]
    patch_status(client, admin_headers, data["id"], "rejected", note="Out of stock")

    track = client.get(f"/api/v1/orders/track/{number}")
    assert track.status_code == 200
    assert track.json()["status"] == "rejected"
    assert track.json()["closing_reason"] == "Out of stock"
    assert "phone" not in track.json()

    timeline = client.get(f"/api/v1/orders/track/{number}/timeline").json()
    assert [e["to_status"] for e in timeline["events"]] == ["pending", "rejected"]
    assert all("changed_by" not in e for e in timeline["events"])
    assert all("changed_by" not in e for e in track.json()["timeline"])
    assert timeline["events"][1]["note"] == "Out of stock"
    assert set(timeline["durations"]) == {"pending", "rejected"}

    order_id = data["id"]
    detail = client.get(f"/api/v1/orders/{order_id}", headers=admin_headers).json()
    assert detail["timeline"][1]["changed_by"] == "admin-1"


def test_track_unknown_order(client):
    resp = client.get("/api/v1/orders/track/ORD-NOPE-0000")
    assert resp.status_code == 404
    assert resp.json()["code"] == "ORDER_NOT_FOUND"


def test_admin_status_flow(client, catalog, admin_headers, notifier):
    order_id = place(client, catalog)["id"]

    for status in ("accepted", "preparing", "out_for_delivery", "delivered", "completed"):
        resp = patch_status(client, admin_headers, order_id, status)
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == status

    detail = client.get(f"/api/v1/orders/{order_id}", headers=admin_headers).json()
    assert len(detail["timeline"]) == 6
    assert detail["allowed_transitions"] == []
    assert notifier.statuses[-1] == "completed"


def test_invalid_transition_is_conflict(client, catalog, admin_headers):
    order_id = place(client, catalog)["id"]

    resp = patch_status(client, admin_headers, order_id, "cancelled", note="Changed mind")
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "INVALID_TRANSITION"
    assert body["current_status"] == "pending"
    assert body["allowed_transitions"] == ["accepted", "rejected"]


def test_missing_reason(client, catalog, admin_headers):
    order_id = place(client, catalog)["id"]

    resp = patch_status(client, admin_headers, order_id, "rejected", note="   ")
    assert resp.status_code == 422
    assert resp.json()["code"] == "MISSING_REASON"


def test_unknown_status_value(client, catalog, admin_headers):
    order_id = place(client, catalog)["id"]
    resp = patch_status(client, admin_headers, order_id, "shipped")
    assert resp.status_code == 422


def test_admin_endpoints_require_admin(client, catalog, customer_headers):
    order_id = place(client, catalog)["id"]

    assert patch_status(client, {}, order_id, "accepted").status_code == 401
    assert patch_status(client, customer_headers, order_id, "accepted").status_code == 403
    assert client.get("/api/v1/orders").status_code == 401
    bad_token = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/api/v1/orders", headers=bad_token).status_code == 401


def test_admin_list(client, catalog, admin_headers):
    first = place(client, catalog, customer_name="Maria Santos")
    place(client, catalog)
    patch_status(client, admin_headers, first["id"], "accepted")

    page = client.get("/api/v1/orders", headers=admin_headers).json()
    assert page["total"] == 2
    assert page["page"] == 1

    accepted = client.get(
        "/api/v1/orders", params={"status": "accepted"}, headers=admin_headers
    ).json()
    assert [o["id"] for o in accepted["items"]] == [first["id"]]

    found = client.get(
        "/api/v1/orders", params={"search": "Maria"}, headers=admin_headers
    ).json()
    assert found["total"] == 1

    dated = client.get(
        "/api/v1/orders",
        params={"start_date": "2024-01-01T08:00:00+08:00", "end_date": "2999-01-01T00:00:00Z"},
        headers=admin_headers,
    )
    assert dated.status_code == 200, dated.text
    assert dated.json()["total"] == 2

    future = client.get(
        "/api/v1/orders", params={"start_date": "2999-01-01T00:00:00"}, headers=admin_headers
    ).json()
    assert future["total"] == 0

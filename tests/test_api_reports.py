"""
HTTP tests for the admin dashboard and sales report.
"""
from decimal import Decimal


def place(client, catalog):
    resp = client.post(
        "/api/v1/orders",
        json={
            "customer_name": "Juan Dela Cruz",
            "phone": "09171234567",
            "address": "123 Rizal St.",
            "barangay": "San Isidro",
            "items": [{"product_id": str(catalog.pipe_id), "quantity": 2}],
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def advance(client, headers, order_id, *statuses, note=None):
    for status in statuses:
        resp = client.patch(
            f"/api/v1/orders/{order_id}/status",
            json={"status": status, "note": note},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text


def test_dashboard(client, catalog, admin_headers):
    completed = place(client, catalog)["id"]
    place(client, catalog)
    advance(client, admin_headers, completed, "accepted", "preparing", "out_for_delivery", "delivered", "completed")

    stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()
    assert stats["total_orders"] == 2
    assert stats["today_orders"] == 2
    assert stats["pending_orders"] == 1
    assert stats["total_products"] == 3
    assert Decimal(stats["today_revenue"]) == Decimal("171.00")
    assert len(stats["latest_orders"]) == 2


def test_sales_report(client, catalog, admin_headers):
    kept = place(client, catalog)["id"]
    rejected = place(client, catalog)["id"]
    advance(client, admin_headers, kept, "accepted", "preparing", "out_for_delivery", "delivered", "completed")
    advance(client, admin_headers, rejected, "rejected", note="Out of stock")

    resp = client.get("/api/v1/admin/reports/sales", params={"days": 7}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    report = resp.json()

    assert report["days"] == 7
    assert len(report["daily_series"]) == 7
    assert report["total_orders"] == 2
    assert Decimal(report["total_revenue"]) == Decimal("171.00")
    assert Decimal(report["realized_revenue"]) == Decimal("171.00")
    assert report["completion_rate"] == 50.0
    assert report["status_distribution"]["rejected"] == 1
    assert report["growth"]["revenue"] is None
    assert report["top_products"][0]["units_sold"] == 2
    assert report["category_performance"][0]["name"] == "Plumbing"
    assert report["timezone"] == "Asia/Manila"


def test_sales_report_defaults_and_bounds(client, admin_headers):
    resp = client.get("/api/v1/admin/reports/sales", headers=admin_headers)
    assert resp.status_code == 200
    assert len(resp.json()["daily_series"]) == 30

    assert client.get(
        "/api/v1/admin/reports/sales", params={"days": 0}, headers=admin_headers
    ).status_code == 422
    assert client.get(
        "/api/v1/admin/reports/sales", params={"days": 367}, headers=admin_headers
    ).status_code == 422


def test_reports_require_admin(client):
    assert client.get("/api/v1/admin/stats").status_code == 401
    assert client.get("/api/v1/admin/reports/sales").status_code == 401

"""GET /api/v1/orders/stats/summary/"""

import pytest
from freezegun import freeze_time

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/stats/summary/"


@pytest.fixture()
def history(buyer_client, order_payload, advance):
    """One completed and rated order, one cancelled, one pending."""
    completed = buyer_client.post("/api/v1/orders/", order_payload, format="json").data
    advance(completed["id"], "ready")
    buyer_client.put(
        f"/api/v1/orders/{completed['id']}/status/", {"status": "completed"}, format="json"
    )
    buyer_client.post(f"/api/v1/orders/{completed['id']}/rate/", {"stars": 4}, format="json")

    only_avocados = {**order_payload, "items": order_payload["items"][1:]}
    cancelled = buyer_client.post("/api/v1/orders/", only_avocados, format="json").data
    buyer_client.put(f"/api/v1/orders/{cancelled['id']}/cancel/", {}, format="json")

    buyer_client.post("/api/v1/orders/", only_avocados, format="json")


def test_farmer_summary(farmer_client, history):
    response = farmer_client.get(URL)

    assert response.status_code == 200
    assert response.data == {
        "role": "farmer",
        "total_orders": 3,
        "pending": 1,
        "confirmed": 0,
        "preparing": 0,
        "ready": 0,
        "completed": 1,
        "cancelled": 1,
        "total_sales": "31000.00",
        "sales_current_month": "31000.00",
        "average_rating": "4.0",
    }


def test_buyer_summary(buyer_client, history):
    response = buyer_client.get(URL)

    assert response.status_code == 200
    assert response.data == {
        "role": "buyer",
        "total_orders": 3,
        "active": 1,
        "completed": 1,
        "cancelled": 1,
        "total_spent": "31000.00",
        "spent_current_month": "31000.00",
        "farmers_contacted": 1,
    }


def test_empty_summary(other_buyer_client):
    response = other_buyer_client.get(URL)

    assert response.data["total_orders"] == 0
    assert response.data["total_spent"] == "0.00"


def test_stats_route_is_not_an_order_id(buyer_client):
    assert buyer_client.get(URL).status_code == 200


def test_current_month_only_counts_this_months_completions(
    buyer_client, farmer_client, order_payload, advance
):
    with freeze_time("2026-09-15 15:00:00"):
        order = buyer_client.post("/api/v1/orders/", order_payload, format="json").data
        advance(order["id"], "ready")
        buyer_client.put(
            f"/api/v1/orders/{order['id']}/status/", {"status": "completed"}, format="json"
        )

    with freeze_time("2026-10-19 15:00:00"):
        farmer_stats = farmer_client.get(URL).data
        buyer_stats = buyer_client.get(URL).data

    assert farmer_stats["total_sales"] == "31000.00"
    assert farmer_stats["sales_current_month"] == "0.00"
    assert buyer_stats["total_spent"] == "31000.00"
    assert buyer_stats["spent_current_month"] == "0.00"

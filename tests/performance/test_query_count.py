"""Query count stays flat as orders and lines grow (no N+1)."""

from decimal import Decimal

import pytest

from modules.products.models import Product

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def catalog(farmer):
    return [
        Product.objects.create(
            farmer=farmer,
            name=f"Producto {i}",
            price=Decimal("1000.00"),
            stock_quantity=Decimal("500.00"),
        )
        for i in range(4)
    ]


@pytest.fixture()
def many_orders(buyer_client, farmer, catalog, order_payload):
    payload = {
        **order_payload,
        "items": [{"product_id": str(p.id), "quantity": "1.00"} for p in catalog],
    }
    return [
        buyer_client.post(URL, payload, format="json").data for _ in range(8)
    ]


def test_list_query_count_is_constant(
    buyer_client, many_orders, django_assert_max_num_queries
):
    # count, orders joined with both parties, items, products
    with django_assert_max_num_queries(5):
        response = buyer_client.get(URL)

    assert response.status_code == 200
    assert response.data["count"] == 8
    assert {o["item_count"] for o in response.data["results"]} == {4}


def test_retrieve_query_count_is_constant(
    farmer_client, many_orders, django_assert_max_num_queries
):
    with django_assert_max_num_queries(4):
        response = farmer_client.get(f"{URL}{many_orders[0]['id']}/")

    assert response.status_code == 200
    assert len(response.data["items"]) == 4

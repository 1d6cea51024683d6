from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.products.models import Product, ProductStatus
from modules.users.models import User, UserRole


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def farmer():
    return User.objects.create_user(
        username="don_jose", password="testpass123", role=UserRole.FARMER
    )


@pytest.fixture()
def other_farmer():
    return User.objects.create_user(
        username="dona_maria", password="testpass123", role=UserRole.FARMER
    )


@pytest.fixture()
def buyer():
    return User.objects.create_user(
        username="laura", password="testpass123", role=UserRole.BUYER
    )


@pytest.fixture()
def other_buyer():
    return User.objects.create_user(
        username="camilo", password="testpass123", role=UserRole.BUYER
    )


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def farmer_client(farmer):
    return _client_for(farmer)


@pytest.fixture()
def buyer_client(buyer):
    return _client_for(buyer)


@pytest.fixture()
def other_farmer_client(other_farmer):
    return _client_for(other_farmer)


@pytest.fixture()
def other_buyer_client(other_buyer):
    return _client_for(other_buyer)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def potatoes(farmer):
    return Product.objects.create(
        farmer=farmer,
        name="Papa pastusa",
        price=Decimal("5000.00"),
        stock_quantity=Decimal("3.00"),
        status=ProductStatus.AVAILABLE,
    )


@pytest.fixture()
def avocados(farmer):
    return Product.objects.create(
        farmer=farmer,
        name="Aguacate hass",
        price=Decimal("8000.00"),
        stock_quantity=Decimal("20.00"),
        status=ProductStatus.SEASONAL,
    )


@pytest.fixture()
def order_payload(farmer, potatoes, avocados):
    """3 kg of potatoes at 5000 + 2 kg of avocados at 8000 = 31000."""
    return {
        "seller_id": farmer.pk,
        "items": [
            {"product_id": str(potatoes.id), "quantity": "3.00"},
            {"product_id": str(avocados.id), "quantity": "2.00"},
        ],
        "delivery_address": "Calle 10 # 5-20, Tunja",
        "contact_phone": "3001234567",
        "scheduled_delivery_date": (date.today() + timedelta(days=2)).isoformat(),
        "payment_method": "cash",
        "buyer_notes": "Dejar en portería",
    }


@pytest.fixture()
def created_order(buyer_client, order_payload):
    """Create an order via the API and return the response data."""
    response = buyer_client.post("/api/v1/orders/", order_payload, format="json")
    assert response.status_code == 201, response.data
    return response.data


@pytest.fixture()
def advance(farmer_client):
    """Walk an order through seller transitions: ``advance(order_id, "ready")``."""
    path = ["confirmed", "preparing", "ready"]

    def _advance(order_id, target):
        for step in path[: path.index(target) + 1]:
            response = farmer_client.put(
                f"/api/v1/orders/{order_id}/status/", {"status": step}, format="json"
            )
            assert response.status_code == 200, response.data
        return response.data

    return _advance

"""Stale writers lose: status and rating writes are compare-and-set."""

import pytest

from modules.activity.models import ActivityRecord
from modules.activity.repositories.django_repository import ActivityDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import AlreadyRated, InvalidOrderStatus
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.users.models import UserRole
from modules.users.repositories.django_repository import UserDjangoRepository
from tests.fakes import RecordingEventBus

pytestmark = pytest.mark.integration


@pytest.fixture()
def orders():
    return OrderDjangoRepository()


@pytest.fixture()
def service(orders):
    return OrderService(
        order_repository=orders,
        product_repository=ProductDjangoRepository(),
        user_repository=UserDjangoRepository(),
        activity_repository=ActivityDjangoRepository(),
        event_bus=RecordingEventBus(),
    )


def stale_read(orders, monkeypatch, order_id, status):
    """Make the locked read return a copy of the order as it was at ``status``."""
    stale = Order.objects.get(id=order_id)
    stale.status = status
    monkeypatch.setattr(orders, "get_for_update", lambda _id: stale)


def test_stale_transition_is_rejected(
    service, orders, created_order, farmer, buyer, monkeypatch
):
    service.update_status(created_order["id"], OrderStatus.CONFIRMED, farmer.pk, UserRole.FARMER)
    activity_before = ActivityRecord.objects.count()
    stale_read(orders, monkeypatch, created_order["id"], OrderStatus.PENDING)

    with pytest.raises(InvalidOrderStatus, match="modified by another request"):
        service.cancel_order(created_order["id"], buyer.pk, UserRole.BUYER)

    assert Order.objects.get(id=created_order["id"]).status == OrderStatus.CONFIRMED
    assert ActivityRecord.objects.count() == activity_before


def test_stale_completion_does_not_settle_twice(
    service, orders, created_order, advance, buyer, farmer, avocados, monkeypatch
):
    advance(created_order["id"], "ready")
    service.update_status(created_order["id"], OrderStatus.COMPLETED, buyer.pk, UserRole.BUYER)
    stale_read(orders, monkeypatch, created_order["id"], OrderStatus.READY)

    with pytest.raises(InvalidOrderStatus):
        service.update_status(
            created_order["id"], OrderStatus.COMPLETED, farmer.pk, UserRole.FARMER
        )

    avocados.refresh_from_db()
    assert avocados.stock_quantity == 18


def test_stale_rating_is_rejected(
    service, orders, created_order, advance, buyer, farmer, monkeypatch
):
    advance(created_order["id"], "ready")
    service.update_status(created_order["id"], OrderStatus.COMPLETED, buyer.pk, UserRole.BUYER)

    stale = Order.objects.get(id=created_order["id"])
    service.rate_order(created_order["id"], buyer.pk, UserRole.BUYER, stars=5)
    monkeypatch.setattr(orders, "get_by_id", lambda _id: stale)

    with pytest.raises(AlreadyRated):
        service.rate_order(created_order["id"], buyer.pk, UserRole.BUYER, stars=1)

    farmer.refresh_from_db()
    assert farmer.rating_count == 1
    assert farmer.rating_average == 5

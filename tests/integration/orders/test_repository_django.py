from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.orders.pricing import PricedLine
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.users.models import UserRole

pytestmark = pytest.mark.integration


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


@pytest.fixture()
def order(repo, buyer, farmer, potatoes, avocados):
    header = {
        "buyer_id": buyer.pk,
        "seller_id": farmer.pk,
        "delivery_address": "Carrera 7 # 12-40, Duitama",
        "contact_phone": "3115550000",
        "scheduled_delivery_date": "2026-11-10",
        "total_amount": Decimal("13000.00"),
    }
    lines = [
        PricedLine(product_id=potatoes.id, quantity=Decimal("1"), unit_price=Decimal("5000")),
        PricedLine(product_id=avocados.id, quantity=Decimal("1"), unit_price=Decimal("8000")),
    ]
    return repo.create(header, lines)


def test_create_writes_header_and_lines(repo, order):
    stored = repo.get_by_id(order.id)

    assert stored.order_number.startswith("ORD-")
    assert stored.status == OrderStatus.PENDING
    assert [i.subtotal for i in repo.get_items(order.id)] == [
        Decimal("5000.00"),
        Decimal("8000.00"),
    ]


@pytest.mark.parametrize("bad_id", ["nope", "", 12])
def test_get_by_id_tolerates_malformed_ids(repo, bad_id):
    assert repo.get_by_id(bad_id) is None


def test_get_by_id_unknown(repo):
    assert repo.get_by_id(uuid4()) is None


def test_list_for_party(repo, order, buyer, farmer, other_buyer):
    assert list(repo.list_for_party(buyer.pk, UserRole.BUYER)) == [order]
    assert list(repo.list_for_party(farmer.pk, UserRole.FARMER)) == [order]
    assert list(repo.list_for_party(other_buyer.pk, UserRole.BUYER)) == []
    # A farmer is never listed as buyer of their own sales.
    assert list(repo.list_for_party(farmer.pk, UserRole.BUYER)) == []


def test_transition_is_compare_and_set(repo, order):
    assert repo.transition(order.id, OrderStatus.PENDING, {"status": OrderStatus.CONFIRMED})
    assert not repo.transition(
        order.id, OrderStatus.PENDING, {"status": OrderStatus.CANCELLED}
    )
    assert Order.objects.get(id=order.id).status == OrderStatus.CONFIRMED


def test_set_rating_only_once_and_only_when_completed(repo, order):
    assert not repo.set_rating(order.id, "seller_rating", 5, "seller_rating_comment", "")

    Order.objects.filter(id=order.id).update(status=OrderStatus.COMPLETED)

    assert repo.set_rating(order.id, "seller_rating", 5, "seller_rating_comment", "bien")
    assert not repo.set_rating(order.id, "seller_rating", 1, "seller_rating_comment", "")
    assert repo.set_rating(order.id, "buyer_rating", 3, "buyer_rating_comment", "")

    stored = Order.objects.get(id=order.id)
    assert (stored.seller_rating, stored.buyer_rating) == (5, 3)
    assert stored.seller_rating_comment == "bien"


def test_order_number_is_unique(repo, order, buyer, farmer, potatoes, monkeypatch):
    numbers = iter([order.order_number, "ORD-20261019-ABC123"])
    monkeypatch.setattr(Order, "generate_order_number", staticmethod(lambda: next(numbers)))

    second = repo.create(
        {
            "buyer_id": buyer.pk,
            "seller_id": farmer.pk,
            "delivery_address": "Calle 1",
            "contact_phone": "3115550001",
            "scheduled_delivery_date": "2026-11-10",
            "total_amount": Decimal("5000.00"),
        },
        [PricedLine(product_id=potatoes.id, quantity=Decimal("1"), unit_price=Decimal("5000"))],
    )

    assert second.order_number == "ORD-20261019-ABC123"

"""OrderService against the Django repositories, without the HTTP layer."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

import pytest
from pydantic import ValidationError

from modules.activity.repositories.django_repository import ActivityDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.users.models import UserRole
from modules.users.repositories.django_repository import UserDjangoRepository
from tests.fakes import RecordingEventBus

pytestmark = pytest.mark.integration

CENT = Decimal("0.01")


@pytest.fixture()
def service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        user_repository=UserDjangoRepository(),
        activity_repository=ActivityDjangoRepository(),
        event_bus=RecordingEventBus(),
    )


def make_dto(buyer, farmer, *items):
    return CreateOrderDTO(
        buyer_id=buyer.pk,
        seller_id=farmer.pk,
        items=list(items),
        delivery_address="Calle 18 # 9-30, Sogamoso",
        contact_phone="3125550101",
        scheduled_delivery_date=date(2026, 11, 12),
    )


def test_stored_lines_match_their_subtotals(service, buyer, farmer, potatoes, avocados):
    order = service.create_order(
        make_dto(
            buyer,
            farmer,
            CreateOrderItemDTO(product_id=potatoes.id, quantity=Decimal("1.25")),
            CreateOrderItemDTO(
                product_id=avocados.id,
                quantity=Decimal("0.50"),
                unit_price=Decimal("7999.99"),
            ),
        )
    )

    stored = Order.objects.get(id=order.id)
    items = list(OrderItem.objects.filter(order=stored))
    for item in items:
        expected = (item.quantity * item.unit_price).quantize(CENT, rounding=ROUND_HALF_UP)
        assert item.subtotal == expected
    assert stored.total_amount == sum(item.subtotal for item in items)
    assert stored.total_amount == Decimal("10250.00")


@pytest.mark.parametrize(
    "field, value", [("quantity", "1.005"), ("unit_price", "5000.001")]
)
def test_amounts_finer_than_cents_are_rejected(potatoes, field, value):
    data = {"product_id": potatoes.id, "quantity": Decimal("1")}
    data[field] = Decimal(value)

    with pytest.raises(ValidationError) as excinfo:
        CreateOrderItemDTO(**data)

    assert excinfo.value.errors()[0]["loc"] == (field,)
    assert Order.objects.count() == 0


def test_repeated_product_lines_are_settled_together(service, buyer, farmer, avocados):
    order = service.create_order(
        make_dto(
            buyer,
            farmer,
            CreateOrderItemDTO(product_id=avocados.id, quantity=Decimal("2")),
            CreateOrderItemDTO(product_id=avocados.id, quantity=Decimal("3")),
        )
    )
    assert OrderItem.objects.filter(order_id=order.id).count() == 2
    assert order.total_amount == Decimal("40000.00")

    for status in ("confirmed", "preparing", "ready", "completed"):
        service.update_status(order.id, status, farmer.pk, UserRole.FARMER)

    avocados.refresh_from_db()
    assert Order.objects.get(id=order.id).status == OrderStatus.COMPLETED
    assert avocados.stock_quantity == Decimal("15.00")

import logging
from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.events import OrderCreated, StockSettled
from modules.orders.handlers import OrderCreatedHandler, StockSettledHandler
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


def messages(caplog, event_name):
    return [r.getMessage() for r in caplog.records if event_name in r.getMessage()]


def test_created_handler_logs_event(caplog):
    order_id = uuid4()
    with caplog.at_level(logging.INFO):
        OrderCreatedHandler().handle(
            OrderCreated(
                aggregate_id=order_id,
                buyer_id=3,
                seller_id=1,
                total_amount=Decimal("31000.00"),
                item_count=2,
            )
        )

    (message,) = messages(caplog, "order.event.created")
    assert str(order_id) in message
    assert "31000.00" in message


def test_stock_settled_handler_lists_depleted_products(caplog):
    products = (
        {"product_id": "papa", "quantity": "3", "remaining": "0", "status": "out_of_stock"},
        {"product_id": "aguacate", "quantity": "2", "remaining": "18", "status": "seasonal"},
    )
    with caplog.at_level(logging.INFO):
        StockSettledHandler().handle(StockSettled(aggregate_id=uuid4(), products=products))

    (message,) = messages(caplog, "order.event.stock_settled")
    assert "['papa']" in message


def test_handlers_are_subscribed_on_startup(caplog):
    with caplog.at_level(logging.INFO):
        event_bus.publish(OrderCreated(aggregate_id=uuid4()))
    assert messages(caplog, "order.event.created")

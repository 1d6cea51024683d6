"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderRated,
    OrderStatusChanged,
    StockSettled,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            buyer_id=str(event.buyer_id),
            seller_id=str(event.seller_id),
            total_amount=str(event.total_amount),
            item_count=event.item_count,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
            party=event.party,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            cancelled_by=str(event.cancelled_by),
        )


class StockSettledHandler(IEventHandler[StockSettled]):
    def handle(self, event: StockSettled) -> None:
        depleted = [
            p["product_id"] for p in event.products if p.get("status") == "out_of_stock"
        ]
        logger.info(
            "order.event.stock_settled",
            order_id=str(event.aggregate_id),
            product_count=len(event.products),
            depleted_products=depleted,
        )


class OrderRatedHandler(IEventHandler[OrderRated]):
    def handle(self, event: OrderRated) -> None:
        logger.info(
            "order.event.rated",
            order_id=str(event.aggregate_id),
            rated_user_id=str(event.rated_user_id),
            stars=event.stars,
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
stock_settled_handler = StockSettledHandler()
order_rated_handler = OrderRatedHandler()

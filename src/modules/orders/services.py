"""Order service layer (Use Cases).

Orchestrates the core business logic for order creation, status
management, cancellation and rating.  Every write use case runs inside one
unit-of-work block: either everything it touched is committed or nothing
is.

Business rules enforced:
- Each line passes the product availability check before anything is
  written; the first failure aborts the order.
- Line prices are frozen at creation and the total is their sum.
- Status transitions follow ``VALID_TRANSITIONS``; only the seller
  confirms, prepares or marks ready.
- Stock is decremented once, when the order is completed.
- Each side of a completed order rates the other at most once.
- Every creation, transition and rating leaves activity records.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any, Iterable, Optional

import structlog
from django.db import DatabaseError
from pydantic import ValidationError

from modules.activity.models import ActivityKind
from modules.core.unit_of_work import DjangoUnitOfWork
from modules.orders.constants import OrderParty, OrderStatus
from modules.orders.dtos import OrderStatsDTO, RateOrderDTO
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderRated,
    OrderStatusChanged,
    StockSettled,
)
from modules.orders.exceptions import (
    AlreadyRated,
    InvalidOrderData,
    InvalidOrderStatus,
    OrderNotFound,
    OrderPersistenceError,
    ProductUnavailable,
    SellerNotFound,
    UnauthorizedOrderAction,
)
from modules.orders.pricing import OrderPricer
from modules.orders.settlement import StockSettlement
from modules.orders.state_machine import OrderStateMachine
from modules.products.availability import ProductAvailability
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.activity.repositories.interfaces import IActivityRepository
    from modules.core.unit_of_work import IUnitOfWork
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from modules.users.repositories.interfaces import IUserRepository
    from shared.domain.bus import IEventBus
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

ENTITY_TYPE = "order"


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the unit of work via constructor injection
    (DIP), so the same service runs against the ORM or in-memory fakes.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        user_repository: IUserRepository,
        activity_repository: IActivityRepository,
        unit_of_work: Optional[IUnitOfWork] = None,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._user_repo = user_repository
        self._activity_repo = activity_repository
        self._uow = unit_of_work or DjangoUnitOfWork()
        self._event_bus = event_bus or default_event_bus

        self._availability = ProductAvailability(product_repository)
        self._pricer = OrderPricer()
        self._state_machine = OrderStateMachine()
        self._settlement = StockSettlement(product_repository, order_repository, self._uow)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a new order with all of its lines.

        Steps:
        1. Validate the seller exists and is a farmer.
        2. Check availability of every line against the seller's products.
        3. Price the lines (explicit price or current list price).
        4. Persist header, lines and both activity records atomically.

        Raises:
            SellerNotFound: seller does not exist or is not a farmer.
            ProductUnavailable: a line failed the availability check.
            OrderPersistenceError: the write failed and was rolled back.
        """
        log = logger.bind(buyer_id=str(dto.buyer_id), seller_id=str(dto.seller_id))
        log.info("order.creation_started", item_count=len(dto.items))

        # 1. Validate seller
        seller = self._user_repo.get_by_id(dto.seller_id)
        if seller is None or not seller.is_farmer:
            raise SellerNotFound(f"Farmer {dto.seller_id} not found.")

        # 2. Availability, in request order; first failure wins
        products = {}
        for item in dto.items:
            result = self._availability.check(
                item.product_id, item.quantity, seller_id=dto.seller_id
            )
            if not result.available:
                log.info(
                    "order.creation_rejected",
                    product_id=str(item.product_id),
                    reason=result.reason,
                )
                raise ProductUnavailable(result.reason, product_id=item.product_id)
            products[str(item.product_id)] = result.product

        # 3. Pricing
        priced = self._pricer.price(dto.items, products)
        header = {**dto.header(), "total_amount": priced.total}

        # 4. Persist
        try:
            with self._uow.atomic():
                order = self._order_repo.create(header, priced.lines)
                self._record(
                    dto.buyer_id,
                    ActivityKind.ORDER,
                    f"New order placed - ${priced.total}",
                    order,
                )
                self._record(
                    dto.seller_id,
                    ActivityKind.INFO,
                    f"New order received - {len(priced.lines)} products",
                    order,
                )
                self._publish_on_commit(
                    OrderCreated(
                        aggregate_id=order.id,
                        buyer_id=dto.buyer_id,
                        seller_id=dto.seller_id,
                        total_amount=priced.total,
                        item_count=len(priced.lines),
                    )
                )
        except DatabaseError as exc:
            log.exception("order.creation_failed")
            raise OrderPersistenceError("The order could not be saved.") from exc

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(priced.total),
        )
        return self._order_repo.get_by_id(order.id) or order

    def update_status(
        self,
        order_id: Any,
        new_status: str,
        acting_user_id: Any,
        acting_role: str,
        notes: str = "",
    ) -> Order:
        """Transition an order to a new status.

        Acquires a row-level lock on the order, validates the transition
        (party, edge, role), then writes with a compare-and-set on the
        status it read.  Entering ``completed`` settles stock in the same
        atomic block.

        Raises:
            InvalidOrderData: ``new_status`` is not a known status.
            OrderNotFound: order does not exist.
            UnauthorizedOrderAction: caller is not allowed to act.
            InvalidOrderStatus: transition is not allowed, or the order
                changed underneath the caller.
            OrderPersistenceError: the write failed and was rolled back.
        """
        self._state_machine.ensure_known_status(new_status)
        log = logger.bind(
            order_id=str(order_id),
            new_status=new_status,
            acting_user_id=str(acting_user_id),
        )

        try:
            with self._uow.atomic():
                order = self._order_repo.get_for_update(order_id)
                if order is None:
                    raise OrderNotFound(f"Order {order_id} not found.")

                old_status = order.status
                party, changes = self._state_machine.plan(
                    order, new_status, acting_user_id, acting_role, notes
                )

                if not self._order_repo.transition(order.id, old_status, changes):
                    log.warning("order.stale_transition", current_status=old_status)
                    raise InvalidOrderStatus(
                        old_status,
                        new_status,
                        message=f"Order {order.order_number} was modified by another "
                        f"request; it is no longer {old_status}.",
                    )

                if new_status == OrderStatus.COMPLETED:
                    settled = self._settlement.settle(order.id)
                    self._publish_on_commit(
                        StockSettled(aggregate_id=order.id, products=tuple(settled))
                    )

                self._record_transition(order, new_status, party, acting_user_id)
                self._publish_on_commit(
                    OrderStatusChanged(
                        aggregate_id=order.id,
                        old_status=old_status,
                        new_status=new_status,
                        acting_user_id=acting_user_id,
                        party=party,
                    )
                )
                if new_status == OrderStatus.CANCELLED:
                    self._publish_on_commit(
                        OrderCancelled(
                            aggregate_id=order.id,
                            cancelled_by=acting_user_id,
                            reason=notes,
                        )
                    )
        except DatabaseError as exc:
            log.exception("order.status_update_failed")
            raise OrderPersistenceError("The order could not be updated.") from exc

        log.info("order.status_updated", old_status=old_status, party=party)
        return self._order_repo.get_by_id(order_id)

    def cancel_order(
        self,
        order_id: Any,
        acting_user_id: Any,
        acting_role: str,
        reason: str = "",
    ) -> Order:
        """Cancel an order; ``reason`` is stored as the acting party's notes."""
        return self.update_status(
            order_id, OrderStatus.CANCELLED, acting_user_id, acting_role, notes=reason
        )

    def rate_order(
        self,
        order_id: Any,
        acting_user_id: Any,
        acting_role: str,
        stars: int,
        comment: str = "",
    ) -> Order:
        """Rate the other side of a completed order.

        The buyer rates the seller and the seller rates the buyer.  The
        rating is written with a conditional update on the still-empty
        rating column, then folded into the rated user's running average.

        Raises:
            InvalidOrderData: stars outside 1..5 or comment too long.
            OrderNotFound: order does not exist.
            UnauthorizedOrderAction: caller is not a party to the order.
            InvalidOrderStatus: the order is not completed.
            AlreadyRated: this side already rated the order.
        """
        try:
            rating = RateOrderDTO(stars=stars, comment=comment or "")
        except ValidationError as exc:
            error = exc.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else None
            raise InvalidOrderData(error["msg"], field=field) from exc

        log = logger.bind(order_id=str(order_id), rater_id=str(acting_user_id))

        try:
            with self._uow.atomic():
                order = self._order_repo.get_by_id(order_id)
                if order is None:
                    raise OrderNotFound(f"Order {order_id} not found.")

                party = self._state_machine.resolve_party(
                    order, acting_user_id, acting_role
                )
                if order.status != OrderStatus.COMPLETED:
                    raise InvalidOrderStatus(
                        order.status,
                        "rated",
                        message="Only completed orders can be rated.",
                    )

                if party == OrderParty.BUYER:
                    rating_field, comment_field = "seller_rating", "seller_rating_comment"
                    rated_user_id = order.seller_id
                else:
                    rating_field, comment_field = "buyer_rating", "buyer_rating_comment"
                    rated_user_id = order.buyer_id

                if getattr(order, rating_field) is not None or not self._order_repo.set_rating(
                    order.id, rating_field, rating.stars, comment_field, rating.comment
                ):
                    log.info("order.already_rated", party=party)
                    raise AlreadyRated("You have already rated this order.")

                rated_user = self._user_repo.apply_rating(rated_user_id, rating.stars)
                self._record(
                    acting_user_id,
                    ActivityKind.SUCCESS,
                    f"Rating sent: {rating.stars} stars",
                    order,
                )
                self._publish_on_commit(
                    OrderRated(
                        aggregate_id=order.id,
                        rated_user_id=rated_user_id,
                        rater_id=acting_user_id,
                        stars=rating.stars,
                        rating_average=rated_user.rating_average,
                    )
                )
        except DatabaseError as exc:
            log.exception("order.rating_failed")
            raise OrderPersistenceError("The rating could not be saved.") from exc

        log.info("order.rated", party=party, stars=rating.stars)
        return self._order_repo.get_by_id(order_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, user_id: Any) -> Order:
        """Retrieve a single order visible to ``user_id``.

        Raises:
            OrderNotFound: if the order does not exist.
            UnauthorizedOrderAction: the caller is neither buyer nor seller.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        if str(user_id) not in (str(order.buyer_id), str(order.seller_id)):
            raise UnauthorizedOrderAction("You do not have permission to view this order.")
        return order

    def list_orders(self, user_id: Any, role: str) -> Iterable[Order]:
        """Orders where the caller is the seller (farmer) or the buyer."""
        return self._order_repo.list_for_party(user_id, role)

    def order_stats(self, user_id: Any, role: str) -> OrderStatsDTO:
        return OrderStatsDTO(role=role, **self._order_repo.stats(user_id, role))

    def can_rate(self, order_id: Any, user_id: Any, role: str) -> bool:
        order = self._order_repo.get_by_id(order_id)
        if order is None or order.status != OrderStatus.COMPLETED:
            return False
        try:
            party = self._state_machine.resolve_party(order, user_id, role)
        except UnauthorizedOrderAction:
            return False
        if party == OrderParty.BUYER:
            return order.seller_rating is None
        return order.buyer_rating is None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record(self, user_id: Any, kind: str, description: str, order: Order) -> None:
        self._activity_repo.append(
            user_id=user_id,
            kind=kind,
            description=description,
            entity_type=ENTITY_TYPE,
            entity_id=str(order.id),
        )

    def _record_transition(
        self, order: Order, new_status: str, party: str, acting_user_id: Any
    ) -> None:
        kind = (
            ActivityKind.COMPLETED
            if new_status == OrderStatus.COMPLETED
            else ActivityKind.INFO
        )
        counterparty_id = order.buyer_id if party == OrderParty.SELLER else order.seller_id
        self._record(
            acting_user_id, kind, f"Order {order.order_number} marked as {new_status}", order
        )
        self._record(
            counterparty_id, kind, f"Order {order.order_number} updated to {new_status}", order
        )

    def _publish_on_commit(self, event: DomainEvent) -> None:
        self._uow.on_commit(partial(self._event_bus.publish, event))

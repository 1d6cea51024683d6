"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Writes join
the caller's ``transaction.atomic()`` block (opened by the service's unit
of work) so the Order aggregate and everything written alongside it
commit together.

Concurrency control on status and rating writes is compare-and-set:
``UPDATE ... WHERE id = ? AND status = <expected>``.  A stale writer
updates zero rows and the service reports the conflict.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db.models import Avg, Count, DecimalField, Q, QuerySet, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from modules.orders.constants import ACTIVE_STATES, OrderStatus
from modules.orders.models import Order, OrderItem
from modules.orders.pricing import PricedLine
from modules.orders.repositories.interfaces import IOrderRepository
from modules.users.models import UserRole

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    def create(self, header: Dict[str, Any], lines: Sequence[PricedLine]) -> Order:
        """Insert the order header and its lines.

        Line subtotals come precomputed from the pricer, so the items are
        bulk-inserted in a single statement.
        """
        order = Order(**header)
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=line.subtotal,
                    notes=line.notes,
                )
                for line in lines
            ]
        )

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(lines),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet[Order]:
        return Order.objects.select_related("buyer", "seller").prefetch_related(
            "items__product"
        )

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Uses ``select_related`` for both parties (single JOIN) and
        ``prefetch_related`` for items and items→product.  Prevents N+1.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the order row is locked (``of=("self",)``); the parties are
        plain reads.  Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update(of=("self",))
                .select_related("buyer", "seller")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_items(self, order_id: Any) -> List[OrderItem]:
        return list(OrderItem.objects.filter(order_id=order_id).order_by("created_at", "id"))

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_party(self, user_id: Any, role: str) -> QuerySet[Order]:
        """Orders visible to the user, newest first.

        Returns a lazy queryset so the API layer can apply filters,
        ordering and pagination on top of it.
        """
        queryset = self._base_queryset()
        if role == UserRole.FARMER:
            return queryset.filter(seller_id=user_id)
        return queryset.filter(buyer_id=user_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    def transition(
        self, order_id: Any, expected_status: str, changes: Dict[str, Any]
    ) -> bool:
        updated = Order.objects.filter(id=order_id, status=expected_status).update(
            updated_at=timezone.now(), **changes
        )
        logger.debug(
            "order.transition_written",
            order_id=str(order_id),
            expected_status=expected_status,
            new_status=changes.get("status"),
            rows=updated,
        )
        return updated == 1

    def set_rating(
        self,
        order_id: Any,
        rating_field: str,
        stars: int,
        comment_field: str,
        comment: str,
    ) -> bool:
        updated = Order.objects.filter(
            id=order_id,
            status=OrderStatus.COMPLETED,
            **{f"{rating_field}__isnull": True},
        ).update(
            updated_at=timezone.now(),
            **{rating_field: stars, comment_field: comment},
        )
        return updated == 1

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def stats(self, user_id: Any, role: str) -> Dict[str, Any]:
        """Dashboard counters for a farmer (as seller) or a buyer.

        Money totals only count ``completed`` orders; the current month is
        the month of ``completed_at`` in the project's time zone.
        """
        today = timezone.localdate()
        completed = Q(status=OrderStatus.COMPLETED)
        this_month = completed & Q(
            completed_at__year=today.year, completed_at__month=today.month
        )
        money = {"output_field": DecimalField(max_digits=14, decimal_places=2)}

        if role == UserRole.FARMER:
            result = Order.objects.filter(seller_id=user_id).aggregate(
                total_orders=Count("id"),
                pending=Count("id", filter=Q(status=OrderStatus.PENDING)),
                confirmed=Count("id", filter=Q(status=OrderStatus.CONFIRMED)),
                preparing=Count("id", filter=Q(status=OrderStatus.PREPARING)),
                ready=Count("id", filter=Q(status=OrderStatus.READY)),
                completed=Count("id", filter=completed),
                cancelled=Count("id", filter=Q(status=OrderStatus.CANCELLED)),
                total_sales=Coalesce(
                    Sum("total_amount", filter=completed), ZERO, **money
                ),
                sales_current_month=Coalesce(
                    Sum("total_amount", filter=this_month), ZERO, **money
                ),
                average_rating=Avg("seller_rating"),
            )
            average = result["average_rating"]
            result["average_rating"] = (
                Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
                if average
                else Decimal("0.0")
            )
            return result

        return Order.objects.filter(buyer_id=user_id).aggregate(
            total_orders=Count("id"),
            active=Count("id", filter=Q(status__in=ACTIVE_STATES)),
            completed=Count("id", filter=completed),
            cancelled=Count("id", filter=Q(status=OrderStatus.CANCELLED)),
            total_spent=Coalesce(Sum("total_amount", filter=completed), ZERO, **money),
            spent_current_month=Coalesce(
                Sum("total_amount", filter=this_month), ZERO, **money
            ),
            farmers_contacted=Count("seller", distinct=True),
        )

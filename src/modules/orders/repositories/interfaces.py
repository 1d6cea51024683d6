"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
creation of the header together with its lines, locked reads, and
compare-and-set writes for status and ratings.

Write methods never open their own transaction; they join the unit of
work the service opened.  The Service Layer depends exclusively on this
contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem
    from modules.orders.pricing import PricedLine


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, header: Dict[str, Any], lines: Sequence[PricedLine]) -> Order:
        """Insert an order header and all of its lines.

        ``header`` holds the order's own columns (buyer_id, seller_id,
        total_amount, delivery fields, buyer_notes).
        """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with items prefetched, ``None`` if missing."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an order holding a row-level lock on it."""

    @abstractmethod
    def get_items(self, order_id: Any) -> List[OrderItem]:
        """Lines of an order in insertion order."""

    @abstractmethod
    def list_for_party(self, user_id: Any, role: str) -> Iterable[Order]:
        """Orders where the user is the seller (farmer) or buyer (buyer)."""

    @abstractmethod
    def transition(
        self, order_id: Any, expected_status: str, changes: Dict[str, Any]
    ) -> bool:
        """Apply ``changes`` only if the order is still in ``expected_status``.

        Returns ``False`` when no row matched.
        """

    @abstractmethod
    def set_rating(
        self,
        order_id: Any,
        rating_field: str,
        stars: int,
        comment_field: str,
        comment: str,
    ) -> bool:
        """Write a rating only if ``rating_field`` is still empty.

        Returns ``False`` when the order had already been rated.
        """

    @abstractmethod
    def stats(self, user_id: Any, role: str) -> Dict[str, Any]:
        """Aggregate counters and amounts for the user's orders."""

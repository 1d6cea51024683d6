"""Order status state machine.

The legal edges live in ``constants.VALID_TRANSITIONS``; this module adds
the rules around them:

- who is acting (buyer or seller of *this* order),
- whether the requested edge exists,
- whether the acting party may take it (only the seller confirms,
  prepares or marks an order ready),
- which fields the transition writes.

Checks always run in that order so the error a caller sees is stable.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict

import structlog
from django.utils import timezone

from modules.orders.constants import (
    SELLER_ONLY_STATES,
    STATUS_TIMESTAMP_FIELDS,
    VALID_TRANSITIONS,
    OrderParty,
    OrderStatus,
)
from modules.orders.exceptions import (
    InvalidOrderData,
    InvalidOrderStatus,
    UnauthorizedOrderAction,
)
from modules.users.models import UserRole

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class OrderStateMachine:
    """Table-driven transition rules for ``Order.status``."""

    @staticmethod
    def ensure_known_status(status: str) -> None:
        if status not in OrderStatus.values:
            raise InvalidOrderData(f"Unknown order status: {status}.", field="status")

    @staticmethod
    def resolve_party(order: "Order", user_id: Any, role: str) -> str:
        """Return which side of ``order`` the caller is on.

        The declared role must match the side: a farmer can only act as the
        seller and a buyer only as the buyer.
        """
        if role == UserRole.FARMER and str(order.seller_id) == str(user_id):
            return OrderParty.SELLER
        if role == UserRole.BUYER and str(order.buyer_id) == str(user_id):
            return OrderParty.BUYER
        raise UnauthorizedOrderAction("You do not have permission to modify this order.")

    @staticmethod
    def is_allowed(current: str, requested: str) -> bool:
        return requested in VALID_TRANSITIONS.get(current, frozenset())

    def validate(self, current: str, requested: str, party: str) -> None:
        """Raise unless ``party`` may move an order from ``current`` to ``requested``."""
        if not self.is_allowed(current, requested):
            logger.warning(
                "order.invalid_transition",
                current_status=current,
                requested_status=requested,
                party=party,
            )
            raise InvalidOrderStatus(current, requested)

        if requested in SELLER_ONLY_STATES and party != OrderParty.SELLER:
            logger.warning(
                "order.transition_forbidden",
                current_status=current,
                requested_status=requested,
                party=party,
            )
            raise UnauthorizedOrderAction(
                f"Only the farmer can mark an order as {requested}."
            )

    @staticmethod
    def changes_for(
        requested: str,
        party: str,
        notes: str = "",
        now: datetime | None = None,
    ) -> Dict[str, Any]:
        """Field updates written together with the new status."""
        changes: Dict[str, Any] = {"status": requested}

        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(requested)
        if timestamp_field:
            changes[timestamp_field] = now or timezone.now()

        if notes:
            notes_field = "seller_notes" if party == OrderParty.SELLER else "buyer_notes"
            changes[notes_field] = notes

        return changes

    def plan(
        self,
        order: "Order",
        requested: str,
        user_id: Any,
        role: str,
        notes: str = "",
        now: datetime | None = None,
    ) -> tuple[str, Dict[str, Any]]:
        """Run every check for a transition and return ``(party, changes)``."""
        self.ensure_known_status(requested)
        party = self.resolve_party(order, user_id, role)
        self.validate(order.status, requested, party)
        return party, self.changes_for(requested, party, notes, now)

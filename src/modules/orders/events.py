"""Domain events for the Orders bounded context.

Published on the in-process bus once the surrounding transaction has
committed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Tuple

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    buyer_id: Any = None
    seller_id: Any = None
    total_amount: Decimal = Decimal("0.00")
    item_count: int = 0


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every accepted status transition, cancellation included."""

    old_status: str = ""
    new_status: str = ""
    acting_user_id: Any = None
    party: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled."""

    cancelled_by: Any = None
    reason: str = ""


@dataclass(frozen=True)
class StockSettled(DomainEvent):
    """Raised when a completed order's quantities were taken off stock."""

    products: Tuple[dict, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OrderRated(DomainEvent):
    """Raised when one side of a completed order rated the other."""

    rated_user_id: Any = None
    rater_id: Any = None
    stars: int = 0
    rating_average: Optional[Decimal] = None

"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  The API
layer (Views) catches ``OrderDomainError`` and translates each subclass
into an HTTP status; ``code`` is the stable machine-readable identifier
rendered in the error envelope.
"""

from __future__ import annotations

from typing import Any, Optional


class OrderDomainError(Exception):
    """Base class for every expected order-core failure."""

    code = "order_error"


class InvalidOrderData(OrderDomainError):
    """Malformed input: unknown status, out-of-range rating, bad quantities."""

    code = "invalid"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class OrderNotFound(OrderDomainError):
    """The requested order does not exist."""

    code = "order_not_found"


class SellerNotFound(OrderDomainError):
    """The seller named on a new order does not exist or is not a farmer."""

    code = "seller_not_found"


class ProductUnavailable(OrderDomainError):
    """An order line failed the availability check.

    ``reason`` is the human-readable availability message, surfaced
    verbatim to the caller.
    """

    code = "product_unavailable"

    def __init__(self, reason: str, product_id: Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.product_id = product_id


class UnauthorizedOrderAction(OrderDomainError):
    """The caller is not a party to the order or lacks the role for the action."""

    code = "forbidden"


class InvalidOrderStatus(OrderDomainError):
    """The requested status is not reachable from the current one.

    Also raised when a concurrent request changed the status between the
    read and the write.
    """

    code = "invalid_transition"

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot transition from {current} to {requested}."
        )
        self.current = current
        self.requested = requested


class AlreadyRated(OrderDomainError):
    """This direction of the order has already been rated."""

    code = "already_rated"


class OrderPersistenceError(OrderDomainError):
    """The atomic write failed and was rolled back."""

    code = "storage_error"

"""Order domain constants.

Defines status choices, the legal transition table of the order state
machine, which transitions only the seller may trigger, and which
timestamp each target status stamps.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pendiente"
    CONFIRMED = "confirmed", "Confirmado"
    PREPARING = "preparing", "Preparando"
    READY = "ready", "Listo"
    COMPLETED = "completed", "Completado"
    CANCELLED = "cancelled", "Cancelado"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Efectivo"
    TRANSFER = "transfer", "Transferencia"
    CARD = "card", "Tarjeta"
    OTHER = "other", "Otro"


class OrderParty(models.TextChoices):
    BUYER = "buyer", "Comprador"
    SELLER = "seller", "Campesino"


VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)

# Only the seller may move an order into these states.
SELLER_ONLY_STATES: frozenset[str] = frozenset(
    {OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY}
)

STATUS_TIMESTAMP_FIELDS: dict[str, str] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PREPARING: "preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.COMPLETED: "completed_at",
}

ACTIVE_STATES: frozenset[str] = frozenset(
    {
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
    }
)

MIN_RATING = 1
MAX_RATING = 5
RATING_COMMENT_MAX_LENGTH = 500

ORDER_NUMBER_MAX_RETRIES = 5

"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: input for a single order line.
- ``CreateOrderDTO``: input for order creation (nested items + delivery).
- ``RateOrderDTO``: input for rating a completed order.
- ``OrderStatsDTO``: output of the dashboard summary.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import (
    MAX_RATING,
    MIN_RATING,
    RATING_COMMENT_MAX_LENGTH,
    PaymentMethod,
)

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order line in a creation request.

    ``unit_price`` is optional: when omitted the Service Layer uses the
    product's current list price.  Both amounts carry at most two decimals,
    the precision of the stored line.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: Decimal = Field(max_digits=10, decimal_places=2)
    unit_price: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)
    notes: str = Field(default="", max_length=255)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Quantity must be greater than zero.")
        return v

    @field_validator("unit_price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Unit price must be greater than zero.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    ``items`` must contain at least one item.  A product may appear on more
    than one line; stock is settled against the sum of its lines.
    """

    model_config = ConfigDict(frozen=True)

    buyer_id: int
    seller_id: int
    items: List[CreateOrderItemDTO]
    delivery_address: str = Field(min_length=1, max_length=255)
    contact_phone: str = Field(min_length=1, max_length=20)
    scheduled_delivery_date: date
    scheduled_delivery_time: Optional[time] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    buyer_notes: str = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    def header(self) -> Dict[str, Any]:
        """Order columns taken as-is from the request."""
        return {
            "buyer_id": self.buyer_id,
            "seller_id": self.seller_id,
            "delivery_address": self.delivery_address,
            "contact_phone": self.contact_phone,
            "scheduled_delivery_date": self.scheduled_delivery_date,
            "scheduled_delivery_time": self.scheduled_delivery_time,
            "payment_method": self.payment_method.value,
            "buyer_notes": self.buyer_notes,
        }


class RateOrderDTO(BaseModel):
    """Stars are a strict integer: booleans and floats are rejected."""

    model_config = ConfigDict(frozen=True)

    stars: int = Field(strict=True, ge=MIN_RATING, le=MAX_RATING)
    comment: str = Field(default="", max_length=RATING_COMMENT_MAX_LENGTH)


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderStatsDTO(BaseModel):
    """Dashboard summary; only the keys that apply to the role are set."""

    model_config = ConfigDict(frozen=True)

    role: str
    total_orders: int = 0
    pending: Optional[int] = None
    confirmed: Optional[int] = None
    preparing: Optional[int] = None
    ready: Optional[int] = None
    active: Optional[int] = None
    completed: int = 0
    cancelled: int = 0
    total_sales: Optional[Decimal] = None
    sales_current_month: Optional[Decimal] = None
    average_rating: Optional[Decimal] = None
    total_spent: Optional[Decimal] = None
    spent_current_month: Optional[Decimal] = None
    farmers_contacted: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)

"""Order pricing.

Turns validated order lines into priced lines and an order total.  The
unit price of a line is the explicit price sent by the buyer when given,
otherwise the product's current list price; either way it is frozen onto
the line and never looked up again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence, Tuple

from modules.orders.exceptions import InvalidOrderData
from modules.orders.models import compute_subtotal

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderItemDTO
    from modules.products.models import Product

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PricedLine:
    product_id: Any
    quantity: Decimal
    unit_price: Decimal
    notes: str = ""
    subtotal: Decimal = field(init=False)

    def __post_init__(self) -> None:
        if self.quantity is None or Decimal(self.quantity) <= 0:
            raise InvalidOrderData(
                "Quantity must be greater than zero.", field="quantity"
            )
        if self.unit_price is None or Decimal(self.unit_price) <= 0:
            raise InvalidOrderData(
                "Unit price must be greater than zero.", field="unit_price"
            )
        object.__setattr__(
            self, "subtotal", compute_subtotal(self.quantity, self.unit_price)
        )


@dataclass(frozen=True)
class PricedOrder:
    lines: Tuple[PricedLine, ...]
    total: Decimal

    @classmethod
    def from_lines(cls, lines: Sequence[PricedLine]) -> "PricedOrder":
        if not lines:
            raise InvalidOrderData("An order needs at least one item.", field="items")
        total = sum((line.subtotal for line in lines), ZERO)
        return cls(lines=tuple(lines), total=total)


class OrderPricer:
    """Stateless pricing of order lines."""

    @staticmethod
    def resolve_unit_price(
        explicit_price: Optional[Decimal], product: "Product"
    ) -> Decimal:
        if explicit_price is not None:
            return Decimal(explicit_price)
        return product.price

    def price(
        self,
        items: Sequence["CreateOrderItemDTO"],
        products_by_id: Mapping[Any, "Product"],
    ) -> PricedOrder:
        """Price every item against the already checked products.

        ``products_by_id`` is keyed by ``str(product_id)``.
        """
        lines = []
        for item in items:
            product = products_by_id[str(item.product_id)]
            lines.append(
                PricedLine(
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=self.resolve_unit_price(item.unit_price, product),
                    notes=item.notes or "",
                )
            )
        return PricedOrder.from_lines(lines)

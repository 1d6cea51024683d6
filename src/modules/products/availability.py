"""Per-line availability check for order creation.

``ProductAvailability.check`` answers whether one order line can be
fulfilled.  It never raises for expected business conditions; each
failure comes back as ``available=False`` with its own human-readable
reason, which order creation surfaces verbatim to the buyer.

Checks run in this order and stop at the first failure:

1. Product exists.
2. Product is ``available`` or ``seasonal``.
3. Product belongs to the seller named on the order (when given).
4. Stock covers the requested quantity.
5. Quantity is not below the minimum sale quantity.
6. Quantity is not above the maximum sale quantity.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import structlog

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    product: Optional["Product"] = None

    @classmethod
    def ok(cls, product: "Product") -> "AvailabilityResult":
        return cls(available=True, product=product)

    @classmethod
    def rejected(
        cls, reason: str, product: Optional["Product"] = None
    ) -> "AvailabilityResult":
        return cls(available=False, reason=reason, product=product)


class ProductAvailability:
    """Read-only availability rules for a product and requested quantity."""

    def __init__(self, product_repository: IProductRepository) -> None:
        self._product_repo = product_repository

    def check(
        self,
        product_id: Any,
        quantity: Decimal,
        seller_id: Any = None,
    ) -> AvailabilityResult:
        product = self._product_repo.get_by_id(product_id)
        result = self.evaluate(product, product_id, quantity, seller_id)
        if not result.available:
            logger.info(
                "product.unavailable",
                product_id=str(product_id),
                quantity=str(quantity),
                reason=result.reason,
            )
        return result

    @staticmethod
    def evaluate(
        product: Optional["Product"],
        product_id: Any,
        quantity: Decimal,
        seller_id: Any = None,
    ) -> AvailabilityResult:
        if product is None:
            return AvailabilityResult.rejected(f"Product {product_id} not found.")

        if not product.is_orderable:
            return AvailabilityResult.rejected(
                f"Product {product.name} is not available "
                f"(status: {product.status}).",
                product,
            )

        if seller_id is not None and str(product.farmer_id) != str(seller_id):
            return AvailabilityResult.rejected(
                f"Product {product.name} does not belong to the selected farmer.",
                product,
            )

        if product.stock_quantity < quantity:
            return AvailabilityResult.rejected(
                f"Insufficient stock for {product.name}. "
                f"Available: {product.stock_quantity}{product.unit}.",
                product,
            )

        if quantity < product.min_sale_quantity:
            return AvailabilityResult.rejected(
                f"Minimum quantity for {product.name}: "
                f"{product.min_sale_quantity}{product.unit}.",
                product,
            )

        if quantity > product.max_sale_quantity:
            return AvailabilityResult.rejected(
                f"Maximum quantity for {product.name}: "
                f"{product.max_sale_quantity}{product.unit}.",
                product,
            )

        return AvailabilityResult.ok(product)

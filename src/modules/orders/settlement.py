"""Stock settlement for completed orders.

Stock is never reserved at order time; it is decremented once, when the
order enters ``completed``.  The caller runs ``settle`` inside the same
atomic block as the status write, so a failure here also undoes the
status change.
"""

from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List

import structlog

from modules.products.models import ProductStatus

if TYPE_CHECKING:
    from modules.core.unit_of_work import IUnitOfWork
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


class StockSettlement:
    def __init__(
        self,
        product_repository: IProductRepository,
        order_repository: IOrderRepository,
        unit_of_work: IUnitOfWork,
    ) -> None:
        self._product_repo = product_repository
        self._order_repo = order_repository
        self._uow = unit_of_work

    def settle(self, order_id: Any) -> List[Dict[str, Any]]:
        """Decrement stock for every product on the order.

        Quantities of repeated products are summed first.  Products are
        locked in primary-key order.  Stock is floored at zero and a product
        whose stock reaches zero becomes ``out_of_stock``; otherwise its
        status is left alone.

        Returns one ``{"product_id", "quantity", "remaining", "status"}``
        entry per product.
        """
        quantities: Dict[str, Decimal] = OrderedDict()
        for item in self._order_repo.get_items(order_id):
            key = str(item.product_id)
            quantities[key] = quantities.get(key, ZERO) + item.quantity

        settled: List[Dict[str, Any]] = []
        with self._uow.atomic():
            for product in self._product_repo.get_many_for_update(quantities.keys()):
                quantity = quantities[str(product.id)]
                remaining = product.stock_quantity - quantity
                product.stock_quantity = max(ZERO, remaining)
                if remaining <= 0:
                    product.status = ProductStatus.OUT_OF_STOCK
                self._product_repo.update_stock(product)
                settled.append(
                    {
                        "product_id": str(product.id),
                        "quantity": str(quantity),
                        "remaining": str(product.stock_quantity),
                        "status": product.status,
                    }
                )

        logger.info(
            "order.stock_settled",
            order_id=str(order_id),
            product_count=len(settled),
        )
        return settled

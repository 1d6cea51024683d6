"""Product repository interface.

Extends ``IRepository[Product]`` with the two reads the order core needs:
a plain look-up for availability checks and a locked bulk read for stock
settlement.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[Product]:
        """Retrieve a product, ``None`` for unknown or malformed IDs."""

    @abstractmethod
    def get_many_for_update(self, ids: Iterable[Any]) -> List[Product]:
        """Retrieve products with row-level locks, ordered by primary key.

        Locking in a fixed order keeps concurrent settlements of orders that
        share products from deadlocking.
        """

    @abstractmethod
    def update_stock(self, product: Product) -> Product:
        """Persist ``stock_quantity`` and ``status`` of a locked product."""

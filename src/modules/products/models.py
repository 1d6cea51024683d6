"""Product model as seen by the order core.

Business rules implemented:
- Only ``available`` and ``seasonal`` products can be ordered.
- Price must be greater than zero.
- Stock quantity cannot be negative.
- An order line must respect the product's minimum and maximum sale
  quantity (expressed in the product's unit, usually kg).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    AVAILABLE = "available", "Disponible"
    SEASONAL = "seasonal", "Temporada"
    OUT_OF_STOCK = "out_of_stock", "Agotado"
    INACTIVE = "inactive", "Inactivo"


ORDERABLE_STATUSES: frozenset[str] = frozenset(
    {ProductStatus.AVAILABLE, ProductStatus.SEASONAL}
)


class Product(BaseModel):
    """A farmer's listing.

    ``stock_quantity`` is only ever decremented by stock settlement when an
    order completes; order creation reads it but does not reserve.
    """

    farmer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    unit = models.CharField(max_length=20, default="kg")
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    min_sale_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.50"),
    )
    max_sale_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("100.00"),
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.AVAILABLE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["farmer", "status"], name="products_farmer_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    @property
    def is_orderable(self) -> bool:
        return self.status in ORDERABLE_STATUSES

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )
        if (
            self.min_sale_quantity is not None
            and self.max_sale_quantity is not None
            and self.min_sale_quantity > self.max_sale_quantity
        ):
            raise ValidationError(
                {"min_sale_quantity": "Minimum sale quantity exceeds the maximum."}
            )

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                farmer_id=str(self.farmer_id),
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.name} ({self.unit})"

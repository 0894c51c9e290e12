"""Product model with stock control.

Business rules implemented:
- Price is stored in minor currency units (cents) and is never negative.
- Stock quantity is never negative (PositiveIntegerField + CHECK constraint).
- Stock is consumed only through the atomic conditional decrement in
  ``ProductDjangoRepository.decrement_stock_if_available``.
"""

from __future__ import annotations

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    """Catalog product offered by the storefront."""

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.PositiveBigIntegerField(help_text="Unit price in minor currency units.")
    stock_quantity = models.PositiveIntegerField(default=0)
    image = models.URLField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )

    def has_stock_for(self, quantity: int) -> bool:
        return self.stock_quantity >= quantity

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.name} ({self.stock_quantity} in stock)"

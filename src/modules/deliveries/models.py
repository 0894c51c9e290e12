"""Delivery model.

One delivery per order transaction.  ``fee`` is assigned by the delivery
fee policy when the record is first saved and never changes afterwards,
so the transaction total computed from it stays stable.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Delivery(BaseModel):
    """Shipping destination and fee for a checkout."""

    address = models.CharField(max_length=255)
    country = models.CharField(max_length=2, default="CO")
    city = models.CharField(max_length=120)
    region = models.CharField(max_length=120)
    postal_code = models.CharField(max_length=20)
    recipient_name = models.CharField(max_length=255)
    fee = models.PositiveBigIntegerField(
        default=0, help_text="Delivery fee in minor currency units."
    )

    class Meta:
        db_table = "deliveries"
        ordering = ["-created_at"]
        verbose_name_plural = "deliveries"

    def __str__(self) -> str:
        return f"{self.recipient_name} - {self.city}, {self.region}"

"""Customer model.

Business rules implemented:
- Email is unique across customers; the checkout re-uses the existing
  customer when the same email starts another transaction.
- ``dni`` (national identification number) is stored digits/letters only
  and masked in ``__str__`` and logs.
"""

from __future__ import annotations

import structlog
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Customer(BaseModel):
    """Storefront customer identified by email."""

    name = models.CharField(max_length=255)
    last_name = models.CharField(max_length=255)
    dni = models.CharField(max_length=20, db_index=True)
    phone = models.CharField(max_length=30)
    email = models.EmailField(max_length=254, unique=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()

    @staticmethod
    def mask_dni(dni: str) -> str:
        suffix = dni[-4:] if dni else "????"
        return f"***{suffix}"

    def save(self, *args, **kwargs) -> None:
        if self.email:
            self.email = self.email.strip().lower()
        if self.dni:
            self.dni = self.dni.strip()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.full_name} (dni: {self.mask_dni(self.dni)})"

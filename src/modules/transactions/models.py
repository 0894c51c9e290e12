"""TransactionStatus and OrderTransaction models.

Business rules implemented:
- Status names come from a seeded registry and are never created by the
  checkout flow.
- ``total`` is computed once on start and never recomputed.
- ``payment_gateway_transaction_id`` is unique and set exactly once, by the
  compare-and-set that moves the transaction out of PENDING.
- Transactions are never deleted (all FKs use PROTECT).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

import structlog
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.transactions.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    TransactionStatusName,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class TransactionStatus(BaseModel):
    """Reference data: one row per status name."""

    name = models.CharField(
        max_length=20,
        choices=TransactionStatusName.choices,
        unique=True,
    )

    class Meta:
        db_table = "transaction_statuses"
        ordering = ["name"]
        verbose_name_plural = "transaction statuses"

    def __str__(self) -> str:
        return self.name


class OrderTransaction(DomainEventMixin, BaseModel):
    """Order transaction aggregate root.

    Created PENDING by ``start_transaction`` and moved to a terminal status
    by ``finish_transaction_with_card``.
    """

    payment_gateway_transaction_id = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        default=None,
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_transactions",
    )
    delivery = models.OneToOneField(
        "deliveries.Delivery",
        on_delete=models.PROTECT,
        related_name="order_transaction",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="order_transactions",
    )
    iva = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal("0"))
    total = models.PositiveBigIntegerField(help_text="Total in minor currency units.")
    status = models.ForeignKey(
        TransactionStatus,
        on_delete=models.PROTECT,
        related_name="order_transactions",
    )

    class Meta:
        db_table = "order_transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="order_tx_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_tx_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def status_name(self) -> str:
        return self.status.name

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the transaction is in a terminal state."""
        return self.status_name in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status_name, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    @staticmethod
    def compute_total(quantity: int, unit_price: int, fee: int, iva: Decimal) -> int:
        """``quantity * price + fee + round(quantity * price * iva)``."""
        subtotal = quantity * unit_price
        tax = (Decimal(subtotal) * Decimal(iva)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return subtotal + fee + int(tax)

    def __str__(self) -> str:
        return f"{self.id} ({self.status_name}, total={self.total})"

"""Domain events for the order transaction aggregate."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderTransactionStarted(DomainEvent):
    """Raised when a checkout is started (status PENDING)."""

    product_id: str
    quantity: int
    total: int


@dataclass(frozen=True, kw_only=True)
class OrderTransactionFinished(DomainEvent):
    """Raised when a transaction reaches a terminal status."""

    status: str
    payment_gateway_transaction_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class StockReconciliationRequired(DomainEvent):
    """Raised when a charge was approved but stock could not be decremented."""

    product_id: str
    quantity: int
    payment_gateway_transaction_id: str
    reason: str

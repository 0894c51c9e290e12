"""Order transaction exceptions.

Raised by ``OrderTransactionService`` and the payment gateway adapters.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from typing import Optional


class OrderTransactionError(Exception):
    """Base class for every checkout failure the API knows how to report."""


class InsufficientStock(OrderTransactionError):
    """The product does not have enough stock for the requested quantity."""


class ProductNotFound(OrderTransactionError):
    """The product referenced by the checkout does not exist."""


class TransactionNotFound(OrderTransactionError):
    """The requested order transaction does not exist."""


class TransactionAlreadyFinished(OrderTransactionError):
    """The order transaction already left the PENDING state."""


class TransactionStatusNotFound(OrderTransactionError):
    """A status name is missing from the status registry (unseeded database)."""


class GatewayError(OrderTransactionError):
    """The payment gateway failed, timed out or answered with garbage."""

    def __init__(self, message: str, gateway_transaction_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.gateway_transaction_id = gateway_transaction_id


class PersistenceError(OrderTransactionError):
    """Local storage failed; when a charge already happened it needs reconciling."""

    def __init__(self, message: str, gateway_transaction_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.gateway_transaction_id = gateway_transaction_id

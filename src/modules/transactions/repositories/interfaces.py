"""Order transaction repository interfaces.

- ``ITransactionStatusRepository``: the status registry.
- ``IOrderTransactionRepository``: the transaction store, including the
  optimistic compare-and-set used to leave the PENDING state.

The Service Layer depends exclusively on these contracts (DIP).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.transactions.models import OrderTransaction, TransactionStatus


class ITransactionStatusRepository(ABC):
    """Resolves status names to their canonical records."""

    @abstractmethod
    def get_by_name(self, name: str) -> TransactionStatus:
        """Return the status called ``name``.

        Raises:
            TransactionStatusNotFound: the registry has no such status.
        """


class IOrderTransactionRepository(IRepository["OrderTransaction"]):
    """Repository contract for the OrderTransaction aggregate root.

    ``save`` and ``compare_and_set_status`` flush the aggregate's pending
    domain events to the outbox in the same database transaction.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[OrderTransaction]:
        """Retrieve a transaction with its product, customer, delivery and status."""

    @abstractmethod
    def compare_and_set_status(
        self,
        entity: OrderTransaction,
        expected: TransactionStatus,
        new: TransactionStatus,
        gateway_transaction_id: Optional[str] = None,
    ) -> bool:
        """Move ``entity`` from ``expected`` to ``new`` in a single conditional write.

        Returns ``False`` and changes nothing when the stored status is no
        longer ``expected`` (another finisher won).  On success ``entity``
        reflects the new status and gateway id.
        """

"""Django ORM implementations of the order transaction repositories.

The status change out of PENDING is an optimistic compare-and-set:
``UPDATE ... WHERE id = ? AND status = PENDING``.  Only one concurrent
finisher can match the row, so no ``select_for_update`` is held across the
payment gateway call.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.core.outbox import enqueue_domain_events
from modules.transactions.constants import OUTBOX_TOPIC
from modules.transactions.exceptions import TransactionStatusNotFound
from modules.transactions.models import OrderTransaction, TransactionStatus
from modules.transactions.repositories.interfaces import (
    IOrderTransactionRepository,
    ITransactionStatusRepository,
)

logger = structlog.get_logger(__name__)


class TransactionStatusDjangoRepository(ITransactionStatusRepository):
    """Status registry backed by the ``transaction_statuses`` table."""

    def get_by_name(self, name: str) -> TransactionStatus:
        status = TransactionStatus.objects.filter(name=name).first()
        if status is None:
            logger.error("transaction_status.not_found", status=name)
            raise TransactionStatusNotFound(f"Transaction status {name} is not registered.")
        return status


class OrderTransactionDjangoRepository(IOrderTransactionRepository):
    """Concrete OrderTransaction repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[OrderTransaction]:
        """Retrieve a transaction with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                OrderTransaction.objects.select_related(
                    "product", "customer", "delivery", "status"
                )
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: OrderTransaction) -> OrderTransaction:
        """Persist the aggregate and its pending domain events."""
        entity.save()
        event_count = enqueue_domain_events(entity, topic=OUTBOX_TOPIC)
        logger.info(
            "order_transaction.saved",
            transaction_id=str(entity.id),
            event_count=event_count,
        )
        return entity

    @transaction.atomic
    def compare_and_set_status(
        self,
        entity: OrderTransaction,
        expected: TransactionStatus,
        new: TransactionStatus,
        gateway_transaction_id: Optional[str] = None,
    ) -> bool:
        changes = {"status": new, "updated_at": timezone.now()}
        if gateway_transaction_id is not None:
            changes["payment_gateway_transaction_id"] = gateway_transaction_id

        updated = OrderTransaction.objects.filter(id=entity.id, status=expected).update(
            **changes
        )
        log = logger.bind(
            transaction_id=str(entity.id),
            expected=expected.name,
            new=new.name,
        )
        if not updated:
            entity.clear_domain_events()
            log.warning("order_transaction.status_cas_lost")
            return False

        entity.status = new
        entity.updated_at = changes["updated_at"]
        if gateway_transaction_id is not None:
            entity.payment_gateway_transaction_id = gateway_transaction_id
        event_count = enqueue_domain_events(entity, topic=OUTBOX_TOPIC)
        log.info("order_transaction.status_changed", event_count=event_count)
        return True

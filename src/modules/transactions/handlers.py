"""Event handlers for order transaction domain events.

Invoked by the outbox relay (``core.relay_outbox_events``).
"""

from __future__ import annotations

import structlog

from modules.transactions.events import (
    OrderTransactionFinished,
    OrderTransactionStarted,
    StockReconciliationRequired,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderTransactionStartedHandler(IEventHandler[OrderTransactionStarted]):
    def handle(self, event: OrderTransactionStarted) -> None:
        logger.info(
            "order_transaction.started_event_handled",
            transaction_id=str(event.aggregate_id),
            total=event.total,
        )


class OrderTransactionFinishedHandler(IEventHandler[OrderTransactionFinished]):
    def handle(self, event: OrderTransactionFinished) -> None:
        logger.info(
            "order_transaction.finished_event_handled",
            transaction_id=str(event.aggregate_id),
            status=event.status,
            gateway_transaction_id=event.payment_gateway_transaction_id,
        )


class StockReconciliationRequiredHandler(IEventHandler[StockReconciliationRequired]):
    """Surfaces approved charges whose stock could not be decremented."""

    def handle(self, event: StockReconciliationRequired) -> None:
        logger.error(
            "order_transaction.stock_reconciliation_pending",
            transaction_id=str(event.aggregate_id),
            product_id=event.product_id,
            quantity=event.quantity,
            gateway_transaction_id=event.payment_gateway_transaction_id,
            reason=event.reason,
        )


order_transaction_started_handler = OrderTransactionStartedHandler()
order_transaction_finished_handler = OrderTransactionFinishedHandler()
stock_reconciliation_required_handler = StockReconciliationRequiredHandler()

"""Unit tests for the order transaction event handlers and their wiring."""

from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from modules.transactions.events import (
    OrderTransactionFinished,
    OrderTransactionStarted,
    StockReconciliationRequired,
)
from modules.transactions.handlers import (
    OrderTransactionFinishedHandler,
    StockReconciliationRequiredHandler,
)
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


class TestHandlers:
    def test_finished_handler_logs_status(self, caplog):
        event = OrderTransactionFinished(
            aggregate_id=uuid4(),
            status="APPROVED",
            payment_gateway_transaction_id="gw-7",
        )

        with caplog.at_level(logging.INFO):
            OrderTransactionFinishedHandler().handle(event)

        assert any(
            "order_transaction.finished_event_handled" in r.getMessage()
            for r in caplog.records
        )

    def test_reconciliation_handler_logs_error(self, caplog):
        event = StockReconciliationRequired(
            aggregate_id=uuid4(),
            product_id=str(uuid4()),
            quantity=2,
            payment_gateway_transaction_id="gw-8",
            reason="insufficient_stock",
        )

        with caplog.at_level(logging.ERROR):
            StockReconciliationRequiredHandler().handle(event)

        records = [
            r for r in caplog.records
            if "order_transaction.stock_reconciliation_pending" in r.getMessage()
        ]
        assert records
        assert records[0].levelno == logging.ERROR


class TestBusWiring:
    @pytest.mark.parametrize(
        "event_class",
        [OrderTransactionStarted, OrderTransactionFinished, StockReconciliationRequired],
    )
    def test_events_resolve_by_name(self, event_class):
        assert event_bus.resolve(event_class.__name__) is event_class

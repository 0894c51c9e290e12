"""Unit tests for the OutboxEvent model.

Covers:
- Defaults of a freshly enqueued checkout event.
- mark_as_published() and mark_as_failed() bookkeeping.
- __str__ representation used by the admin.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from modules.core.models import EventStatus, OutboxEvent

pytestmark = pytest.mark.unit

TRANSACTION_ID = "0192f0a4-8b7e-7c3d-9e21-4b5a6c7d8e9f"


def _enqueue(**overrides) -> OutboxEvent:
    fields = {
        "event_type": "OrderTransactionStarted",
        "payload": {"aggregate_id": TRANSACTION_ID, "quantity": 2, "total": 614998},
        "aggregate_id": TRANSACTION_ID,
        "topic": "order_transactions",
    }
    fields.update(overrides)
    return OutboxEvent.objects.create(**fields)


class TestEnqueuedEvent:
    def test_starts_pending_and_untouched(self):
        event = _enqueue()
        event.refresh_from_db()

        assert event.status == EventStatus.PENDING
        assert (event.processed_at, event.error_message, event.retry_count) == (None, None, 0)
        assert event.payload["total"] == 614998

    def test_primary_key_is_uuid7(self):
        event = _enqueue()

        assert isinstance(event.id, uuid.UUID)
        assert event.id.version == 7


class TestPublishing:
    def test_mark_as_published(self):
        event = _enqueue()

        with freeze_time(timezone.now() + timedelta(seconds=5)):
            event.mark_as_published()
        event.refresh_from_db()

        assert event.status == EventStatus.PUBLISHED
        assert event.processed_at is not None
        assert event.updated_at > event.created_at

    def test_failures_accumulate_until_published(self):
        event = _enqueue(event_type="OrderTransactionFinished")

        event.mark_as_failed("handler raised KeyError")
        event.mark_as_failed("handler raised TimeoutError")
        event.refresh_from_db()
        assert event.status == EventStatus.FAILED
        assert event.retry_count == 2
        assert event.error_message == "handler raised TimeoutError"

        event.mark_as_published()
        event.refresh_from_db()
        assert event.status == EventStatus.PUBLISHED
        assert event.error_message is None
        assert event.retry_count == 2


def test_str_shows_type_status_and_aggregate():
    event = _enqueue(event_type="StockReconciliationRequired")

    assert str(event) == f"StockReconciliationRequired [PENDING] ({TRANSACTION_ID})"


class TestRelayable:
    def test_selects_pending_and_retryable_failures(self):
        pending = _enqueue()
        retryable = _enqueue(status=EventStatus.FAILED, retry_count=2)
        _enqueue(status=EventStatus.FAILED, retry_count=5)
        _enqueue(status=EventStatus.PUBLISHED)

        assert list(OutboxEvent.objects.relayable(max_attempts=5)) == [pending, retryable]

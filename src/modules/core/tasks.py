"""Asynchronous tasks of the core module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction

from modules.core.models import EventStatus, OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

MAX_RELAY_ATTEMPTS = 5


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int | None = None) -> dict:
    """Publish pending outbox events to the in-process event bus.

    Each row is locked and handled in its own transaction so one broken
    handler does not block the rest of the batch.  Failures are recorded
    on the row (``retry_count``) and retried on the next run until
    ``MAX_RELAY_ATTEMPTS`` is reached.
    """
    limit = batch_size or settings.OUTBOX_RELAY_BATCH_SIZE
    candidates = list(
        OutboxEvent.objects.relayable(MAX_RELAY_ATTEMPTS).values_list("id", flat=True)[
            :limit
        ]
    )

    published = failed = 0
    for outbox_id in candidates:
        with transaction.atomic():
            outbox = (
                OutboxEvent.objects.select_for_update()
                .filter(id=outbox_id)
                .exclude(status=EventStatus.PUBLISHED)
                .first()
            )
            if outbox is None:
                continue
            try:
                event_class = event_bus.resolve(outbox.event_type)
                event_bus.publish(event_class.from_payload(outbox.payload))
            except Exception as exc:
                logger.exception(
                    "outbox.relay_failed",
                    outbox_id=str(outbox.id),
                    event_type=outbox.event_type,
                )
                outbox.mark_as_failed(str(exc))
                failed += 1
            else:
                outbox.mark_as_published()
                published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}

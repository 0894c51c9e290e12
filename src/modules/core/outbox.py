"""Helpers that move collected domain events into the outbox table.

Callers must already be inside ``transaction.atomic()`` so the events
commit (or roll back) together with the aggregate that raised them.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent, DomainEventMixin


def enqueue_domain_events(entity: DomainEventMixin, topic: str) -> int:
    """Write one ``OutboxEvent`` per pending event and clear the buffer."""
    events = entity.domain_events
    for event in events:
        OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event_payload(event),
            topic=topic,
        )
    entity.clear_domain_events()
    return len(events)


def serialize_event_payload(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value

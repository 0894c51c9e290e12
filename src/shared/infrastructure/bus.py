"""In-memory event bus implementation."""

from __future__ import annotations

from typing import Dict, List, Type

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent


class UnknownEventType(LookupError):
    """No event class has been subscribed under the given name."""


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus."""

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}
        self._event_classes: Dict[str, Type[DomainEvent]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        self._event_classes[event_class.__name__] = event_class
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            handler.handle(event)

    def resolve(self, event_name: str) -> Type[DomainEvent]:
        try:
            return self._event_classes[event_name]
        except KeyError:
            raise UnknownEventType(f"No subscriber registered for {event_name}.") from None


# Global bus instance (singleton)

event_bus = InMemoryEventBus()

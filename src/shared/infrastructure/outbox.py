"""Registry of domain events that may travel through the outbox.

The relay only knows event *names* (``OutboxEvent.event_type``); modules
register the concrete ``DomainEvent`` subclasses at start-up so stored
payloads can be turned back into events.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from shared.domain.events import DomainEvent


class OutboxEventRegistry:
    def __init__(self) -> None:
        self._event_types: Dict[str, Type[DomainEvent]] = {}

    def register(self, event_class: Type[DomainEvent]) -> None:
        self._event_types[event_class.__name__] = event_class

    def resolve(self, event_type: str) -> Optional[Type[DomainEvent]]:
        return self._event_types.get(event_type)

    def __contains__(self, event_type: str) -> bool:
        return event_type in self._event_types


outbox_registry = OutboxEventRegistry()

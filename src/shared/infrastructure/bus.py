"""In-memory event bus implementation."""

from __future__ import annotations

from typing import Dict, List, Type

import structlog

from shared.domain.bus import EventDispatchError, IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus.

    Every subscribed handler is invoked even if an earlier one raises;
    failures are collected and re-raised as a single ``EventDispatchError``.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(
        self, event_class: Type[DomainEvent], handler: IEventHandler
    ) -> None:
        handlers = self._handlers.get(event_class, [])
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]:
        return list(self._handlers.get(event_class, []))

    def publish(self, event: DomainEvent) -> None:
        errors: List[Exception] = []
        for handler in self._handlers.get(type(event), []):
            try:
                handler.handle(event)
            except Exception as exc:
                logger.exception(
                    "event_bus.handler_failed",
                    event_name=event.event_name,
                    event_id=str(event.event_id),
                    handler=type(handler).__name__,
                )
                errors.append(exc)
        if errors:
            raise EventDispatchError(event, errors)


# Global bus instance (singleton)

event_bus = InMemoryEventBus()

"""Domain bus interfaces for in-process event handling."""

from __future__ import annotations

from typing import Generic, List, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class EventDispatchError(Exception):
    """One or more handlers failed while an event was being dispatched.

    The remaining handlers still ran; ``errors`` keeps every failure.
    """

    def __init__(self, event: DomainEvent, errors: List[Exception]) -> None:
        self.event = event
        self.errors = errors
        super().__init__(
            f"{len(errors)} handler(s) failed for {event.event_name} "
            f"({event.aggregate_id})."
        )


class IEventHandler(Protocol, Generic[E]):
    """Handler interface for domain events."""

    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Event bus interface."""

    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def unsubscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

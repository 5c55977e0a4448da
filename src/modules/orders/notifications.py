"""Outbound status notifications.

The service depends only on ``IStatusNotifier.publish``.  Delivery is
best-effort: the service logs notifier failures and never rolls back a
committed transition because of them.
"""

from __future__ import annotations

from typing import Protocol

import structlog

from modules.core.models import OutboxEvent
from modules.orders.constants import STATUS_NOTIFICATION_TOPIC
from modules.orders.events import OrderStatusChanged
from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class IStatusNotifier(Protocol):
    def publish(self, event: OrderStatusChanged) -> None: ...


class OutboxStatusNotifier:
    """Queues the event in the outbox; ``core.relay_outbox_events`` delivers it."""

    topic = STATUS_NOTIFICATION_TOPIC

    def publish(self, event: OrderStatusChanged) -> None:
        row = OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload={**event.to_payload(), **event.notification()},
            topic=self.topic,
        )
        logger.info(
            "order.notification_queued",
            order_id=str(event.aggregate_id),
            outbox_id=str(row.id),
            new_status=event.new_status,
        )


class EventBusStatusNotifier:
    """Publishes straight onto an in-process bus (no persistence)."""

    def __init__(self, bus: IEventBus) -> None:
        self._bus = bus

    def publish(self, event: OrderStatusChanged) -> None:
        self._bus.publish(event)

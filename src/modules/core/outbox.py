"""Outbox relay: moves stored domain events onto the in-process event bus."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from django.conf import settings
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.bus import IEventBus
from shared.infrastructure.outbox import OutboxEventRegistry

logger = structlog.get_logger(__name__)


@dataclass
class RelayReport:
    published: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.published + self.failed


class OutboxRelay:
    """Publishes outbox rows in ``created_at`` order.

    Each row is handled in its own transaction so one bad event never
    blocks the rest of the batch.
    """

    def __init__(self, bus: IEventBus, registry: OutboxEventRegistry) -> None:
        self._bus = bus
        self._registry = registry

    def relay_pending(
        self, batch_size: int | None = None, topic: str | None = None
    ) -> RelayReport:
        batch_size = batch_size or settings.OUTBOX_RELAY_BATCH_SIZE
        queryset = OutboxEvent.objects.ready_for_relay(settings.OUTBOX_MAX_RETRIES)
        if topic:
            queryset = queryset.filter(topic=topic)

        report = RelayReport()
        for row in list(queryset[:batch_size]):
            if self._relay_one(row):
                report.published += 1
            else:
                report.failed += 1

        if report.processed:
            logger.info(
                "outbox.relayed",
                published=report.published,
                failed=report.failed,
            )
        return report

    def _relay_one(self, row: OutboxEvent) -> bool:
        log = logger.bind(
            outbox_id=str(row.id),
            event_type=row.event_type,
            aggregate_id=row.aggregate_id,
        )
        event_class = self._registry.resolve(row.event_type)
        if event_class is None:
            log.warning("outbox.unknown_event_type")
            row.mark_as_failed(f"Unknown event type {row.event_type}.")
            return False

        try:
            with transaction.atomic():
                event = event_class.from_payload(row.payload)
                self._bus.publish(event)
                row.mark_as_published()
        except Exception as exc:
            log.exception("outbox.publish_failed", retry_count=row.retry_count)
            row.mark_as_failed(str(exc))
            return False

        log.info("outbox.published")
        return True

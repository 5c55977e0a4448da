"""Asynchronous tasks of the core module."""

import structlog
from celery import shared_task

from modules.core.outbox import OutboxRelay
from shared.infrastructure.bus import event_bus
from shared.infrastructure.outbox import outbox_registry

logger = structlog.get_logger(__name__)


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size=None, topic=None):
    """Publish pending outbox rows onto the in-process event bus."""
    report = OutboxRelay(event_bus, outbox_registry).relay_pending(
        batch_size=batch_size, topic=topic
    )
    logger.info(
        "relay_outbox_events.executed",
        published=report.published,
        failed=report.failed,
    )
    return {"published": report.published, "failed": report.failed}

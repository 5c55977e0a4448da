"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    """Delivers status changes to the ordering customer's channel."""

    def handle(self, event: OrderStatusChanged) -> None:
        restaurant_cancelled = (
            event.new_status == OrderStatus.CANCELLED
            and not event.cancelled_by_customer
        )
        if restaurant_cancelled:
            message = f"Order {event.order_number} was cancelled by the restaurant"
            if event.restaurant_note:
                message = f"{message}: {event.restaurant_note}"
        else:
            message = f"Order {event.order_number} is now {event.new_status_label}"
        logger.info(
            message,
            order_id=str(event.aggregate_id),
            customer_id=event.customer_id,
            notification=event.notification(),
        )


order_status_changed_handler = OrderStatusChangedHandler()

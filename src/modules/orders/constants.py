"""Order domain constants.

Status and fulfillment-mode choices plus the valid-status sets per mode
used by the order state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    NEW = "new", "New"
    RECEIVED = "received", "Received"
    PREPARING = "preparing", "Preparing"
    ON_THE_WAY = "on_the_way", "On The Way"
    DELIVERED = "delivered", "Delivered"
    PICKUP_READY = "pickup_ready", "Pickup Ready"
    PICKED_UP = "picked_up", "Picked Up"
    CANCELLED = "cancelled", "Cancelled"


class FulfillmentMode(models.TextChoices):
    DELIVERY = "delivery", "Delivery"
    PICKUP = "pickup", "Pickup"


# Forward order of each mode; ``cancelled`` is reachable from any other status.
VALID_STATUSES: dict[str, tuple[str, ...]] = {
    FulfillmentMode.DELIVERY: (
        OrderStatus.NEW,
        OrderStatus.RECEIVED,
        OrderStatus.PREPARING,
        OrderStatus.ON_THE_WAY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    ),
    FulfillmentMode.PICKUP: (
        OrderStatus.NEW,
        OrderStatus.RECEIVED,
        OrderStatus.PREPARING,
        OrderStatus.PICKUP_READY,
        OrderStatus.PICKED_UP,
        OrderStatus.CANCELLED,
    ),
}

TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.PICKED_UP, OrderStatus.CANCELLED}
)

# A customer may cancel only before the kitchen starts preparing.
CUSTOMER_CANCELLABLE_STATES: frozenset[str] = frozenset(
    {OrderStatus.NEW, OrderStatus.RECEIVED}
)

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_MAX_RETRIES = 5

STATUS_NOTIFICATION_TOPIC = "order-status"

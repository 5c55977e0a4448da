"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order moves to a new status.

    Carries both the raw status tokens and their human-readable labels so
    subscribers can notify the customer without loading the order.
    """

    order_number: str
    previous_status: str
    new_status: str
    previous_status_label: str
    new_status_label: str
    customer_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    cancelled_by_customer: bool = False
    restaurant_note: str = ""

    @property
    def order_id(self):
        return self.aggregate_id

    def notification(self) -> Dict[str, Any]:
        """Shape pushed to the customer's status channel."""
        return {
            "order_id": str(self.aggregate_id),
            "order_number": self.order_number,
            "previous_status_label": self.previous_status_label,
            "new_status_label": self.new_status_label,
            "timestamp": self.occurred_on.isoformat(),
        }

"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from typing import Sequence


class OrderNotFound(Exception):
    """The order does not exist or is not owned by the acting account."""


class InvalidOrderStatus(Exception):
    """A status change was rejected before anything was written."""


class NoOpTransition(InvalidOrderStatus):
    """The requested status equals the current one."""

    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(
            f"Order status is already '{status}'. Choose another status for update."
        )


class InvalidTransition(InvalidOrderStatus):
    """The requested status is not allowed for the order's fulfillment mode."""

    def __init__(
        self,
        message: str,
        valid_statuses: Sequence[str] = (),
    ) -> None:
        self.valid_statuses = [str(s) for s in valid_statuses]
        super().__init__(message)


class MissingCancellationNote(InvalidOrderStatus):
    """A restaurant cancelled an order without explaining why."""

    def __init__(self) -> None:
        super().__init__(
            "A note is required when cancelling an order. Please explain the "
            "reason for cancellation to notify the customer."
        )


class OrderNotCancellable(InvalidOrderStatus):
    """The customer tried to cancel an order that is already being processed."""

    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(
            "This order has already been processed and can no longer be "
            "cancelled. Please contact the restaurant."
        )


class ConcurrentStatusChange(Exception):
    """The order status changed between read and write."""


class OrderPersistenceError(Exception):
    """The store failed to persist a status change; nothing was committed."""

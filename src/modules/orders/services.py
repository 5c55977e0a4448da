"""Order service layer (Use Cases).

The single entry point for changing an order's status.  Every command
validates before it writes, persists inside one transaction, records the
audit trail, and only then notifies subscribers.

Business rules enforced:
- Owner scoping: restaurants act on their orders, customers on theirs.
- Status transitions validated against the per-mode state machine.
- Restaurant cancellations require a note, stored as ``restaurant_note``.
- Customers may cancel only before preparation starts.
- The status write is conditional on the status that was read.
- Notification failures are logged and never undo a committed change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import DatabaseError, transaction

from modules.orders.constants import CUSTOMER_CANCELLABLE_STATES, OrderStatus
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderStatus,
    MissingCancellationNote,
    NoOpTransition,
    OrderNotCancellable,
    OrderNotFound,
    OrderPersistenceError,
)
from modules.orders.state_machine import validate_transition

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import Order
    from modules.orders.notifications import IStatusNotifier
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    order: Order
    previous_status: str
    new_status: str

    @property
    def message(self) -> str:
        return (
            f"Order status updated from {self.previous_status} "
            f"to {self.new_status} successfully"
        )


class OrderService:
    """Application service for Order use-cases.

    Receives the repository and the status notifier via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        notifier: IStatusNotifier,
        lock_terminal_states: Optional[bool] = None,
    ) -> None:
        self._order_repo = order_repository
        self._notifier = notifier
        if lock_terminal_states is None:
            lock_terminal_states = settings.ORDERS_LOCK_TERMINAL_STATES
        self._lock_terminal = lock_terminal_states

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def transition_status(
        self,
        order_id: UUID | str,
        restaurant_id: UUID,
        requested_status: str,
        note: Optional[str] = None,
        changed_by: Any = None,
    ) -> TransitionResult:
        """Move a restaurant's order to *requested_status*.

        Raises:
            OrderNotFound: order absent or owned by another restaurant.
            NoOpTransition: *requested_status* is the current status.
            InvalidTransition: status not valid for the order's mode.
            MissingCancellationNote: cancellation without a note.
            ConcurrentStatusChange: status changed since it was read.
            OrderPersistenceError: the store rejected the write.
        """
        log = logger.bind(
            order_id=str(order_id),
            restaurant_id=str(restaurant_id),
            new_status=requested_status,
        )
        note = (note or "").strip()

        try:
            with transaction.atomic():
                order = self._order_repo.get_for_restaurant(
                    str(order_id), restaurant_id, for_update=True
                )
                if not order:
                    log.info("order.not_found")
                    raise OrderNotFound(f"Order {order_id} not found.")

                log = log.bind(current_status=order.status)
                self._validate(order, requested_status, log)
                cancelling = (
                    requested_status == OrderStatus.CANCELLED
                    and order.status != OrderStatus.CANCELLED
                )
                if cancelling and not note:
                    log.warning("order.cancellation_note_missing")
                    raise MissingCancellationNote()

                old_status = order.apply_transition(
                    requested_status,
                    restaurant_note=note if cancelling else None,
                    lock_terminal=self._lock_terminal,
                )
                self._persist(order, old_status, note, changed_by)
        except DatabaseError as exc:
            log.exception("order.persistence_failed")
            raise OrderPersistenceError("Error updating order status.") from exc

        log.info("order.status_updated")
        self._dispatch_status_events(order)
        return TransitionResult(order, str(old_status), str(order.status))

    def cancel_by_customer(
        self,
        order_id: UUID | str,
        customer_id: UUID,
        changed_by: Any = None,
    ) -> TransitionResult:
        """Cancel a customer's own order before preparation starts.

        Raises:
            OrderNotFound: order absent or placed by another customer.
            NoOpTransition: the order is already cancelled.
            OrderNotCancellable: the restaurant already started on it.
            ConcurrentStatusChange: status changed since it was read.
            OrderPersistenceError: the store rejected the write.
        """
        log = logger.bind(order_id=str(order_id), customer_id=str(customer_id))

        try:
            with transaction.atomic():
                order = self._order_repo.get_for_customer(
                    str(order_id), customer_id, for_update=True
                )
                if not order:
                    log.info("order.not_found")
                    raise OrderNotFound(f"Order {order_id} not found.")

                log = log.bind(current_status=order.status)
                if order.status == OrderStatus.CANCELLED:
                    raise NoOpTransition(order.status)
                if order.status not in CUSTOMER_CANCELLABLE_STATES:
                    log.warning("order.customer_cancel_rejected")
                    raise OrderNotCancellable(order.status)

                self._validate(order, OrderStatus.CANCELLED, log)
                old_status = order.apply_transition(
                    OrderStatus.CANCELLED,
                    cancelled_by_customer=True,
                    lock_terminal=self._lock_terminal,
                )
                self._persist(order, old_status, "Cancelled by customer", changed_by)
        except DatabaseError as exc:
            log.exception("order.persistence_failed")
            raise OrderPersistenceError("Error cancelling order.") from exc

        log.info("order.cancelled_by_customer")
        self._dispatch_status_events(order)
        return TransitionResult(order, str(old_status), str(order.status))

    def _validate(self, order: Order, new_status: str, log) -> None:
        try:
            validate_transition(
                order.status,
                new_status,
                order.fulfillment_mode,
                lock_terminal=self._lock_terminal,
            )
        except NoOpTransition:
            log.info("order.noop_transition")
            raise
        except InvalidOrderStatus:
            log.warning("order.invalid_transition")
            raise

    def _persist(
        self, order: Order, old_status: str, notes: str, changed_by: Any
    ) -> None:
        self._order_repo.save_transition(order, expected_status=old_status)
        self._order_repo.add_history(
            order_id=order.id,
            status=order.status,
            notes=notes,
            old_status=old_status,
            changed_by=changed_by,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_restaurant_order(self, order_id: str, restaurant_id: UUID) -> Order:
        """Raises ``OrderNotFound`` if the restaurant has no such order."""
        order = self._order_repo.get_for_restaurant(str(order_id), restaurant_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def get_customer_order(self, order_id: str, customer_id: UUID) -> Order:
        """Raises ``OrderNotFound`` if the customer has no such order."""
        order = self._order_repo.get_for_customer(str(order_id), customer_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_restaurant_orders(
        self, restaurant_id: UUID, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet[Order]:
        """Orders of a restaurant, newest first."""
        return self._order_repo.list({**(filters or {}), "restaurant_id": restaurant_id})

    def list_customer_orders(
        self, customer_id: UUID, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet[Order]:
        """Orders of a customer, newest first."""
        return self._order_repo.list({**(filters or {}), "customer_id": customer_id})

    # ------------------------------------------------------------------
    # Domain Event dispatch
    # ------------------------------------------------------------------

    def _dispatch_status_events(self, order: Order) -> None:
        """Hand committed status events to the notifier, best-effort."""
        for event in order.domain_events:
            if not isinstance(event, OrderStatusChanged):
                continue
            try:
                self._notifier.publish(event)
            except Exception:
                logger.exception(
                    "order.notification_failed",
                    order_id=str(order.id),
                    event_id=str(event.event_id),
                    old_status=event.previous_status,
                    new_status=event.new_status,
                )
        order.clear_domain_events()

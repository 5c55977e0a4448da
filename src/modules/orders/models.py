"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- Status changes only through ``Order.apply_transition`` (validated against
  the state machine); a plain ``save()`` that changes the status is rejected.
- Fulfillment mode is fixed at creation.
- Restaurant-initiated cancellation requires a restaurant note.
- Each status change generates a history record (written by the service).
- Order number is a monotonically increasing human-readable identifier.
- Restaurant / Customer FKs use PROTECT to preserve financial history.
- OrderItem ``total_price`` is always ``quantity * unit_price`` (calculated on save).
- Financials are computed once at creation and never re-derived.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_NUMBER_PREFIX,
    TERMINAL_STATES,
    FulfillmentMode,
    OrderStatus,
)
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import InvalidOrderStatus
from modules.orders.state_machine import (
    format_status_label,
    valid_statuses_for,
    validate_transition,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``order_number`` (``ORD-000042``) is assigned on first save from the
    unique ``order_sequence`` counter.  The UUIDv7 ``id`` is used for all
    internal references and API lookups.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    order_sequence: models.PositiveBigIntegerField = models.PositiveBigIntegerField(
        unique=True, editable=False
    )
    restaurant: models.ForeignKey = models.ForeignKey(
        "restaurants.Restaurant",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    fulfillment_mode: models.CharField = models.CharField(
        max_length=10,
        choices=FulfillmentMode.choices,
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.NEW,
    )
    delivery_address: models.JSONField = models.JSONField(null=True, blank=True)
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    tax_rate: models.DecimalField = models.DecimalField(
        max_digits=6, decimal_places=4, default=Decimal("0.0000")
    )
    tax_amount: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    delivery_fee: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00")
    )
    customer_note: models.TextField = models.TextField(blank=True, default="")
    restaurant_note: models.TextField = models.TextField(blank=True, default="")
    cancelled_by_customer: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["restaurant", "-created_at"],
                name="orders_restaurant_created_idx",
            ),
            models.Index(
                fields=["customer", "-created_at"],
                name="orders_customer_created_idx",
            ),
        ]

    # ------------------------------------------------------------------
    # Loaded-state tracking
    # ------------------------------------------------------------------

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_status = instance.__dict__.get("status")
        instance._loaded_fulfillment_mode = instance.__dict__.get("fulfillment_mode")
        return instance

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_delivery(self) -> bool:
        return self.fulfillment_mode == FulfillmentMode.DELIVERY

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    @property
    def status_label(self) -> str:
        return format_status_label(self.status)

    @property
    def valid_statuses(self) -> tuple[str, ...]:
        return valid_statuses_for(self.fulfillment_mode)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items.all())

    def apply_transition(
        self,
        new_status: str,
        *,
        restaurant_note: Optional[str] = None,
        cancelled_by_customer: bool = False,
        lock_terminal: bool = False,
    ) -> str:
        """Validate and apply *new_status* in memory; return the previous status.

        Records an ``OrderStatusChanged`` domain event.  Persisting the change
        is the repository's job.
        """
        validate_transition(
            self.status,
            new_status,
            self.fulfillment_mode,
            lock_terminal=lock_terminal,
        )
        old_status = self.status
        self.status = OrderStatus(new_status)
        # Note and attribution always describe the current cancellation only.
        if self.status == OrderStatus.CANCELLED:
            self.cancelled_by_customer = cancelled_by_customer
            self.restaurant_note = (
                "" if cancelled_by_customer else (restaurant_note or "")
            )
        else:
            self.cancelled_by_customer = False
            self.restaurant_note = ""
        self._transition_from = old_status

        self.add_domain_event(
            OrderStatusChanged(
                aggregate_id=self.id,
                order_number=self.order_number,
                previous_status=str(old_status),
                new_status=str(self.status),
                previous_status_label=format_status_label(old_status),
                new_status_label=format_status_label(self.status),
                customer_id=str(self.customer_id),
                restaurant_id=str(self.restaurant_id),
                cancelled_by_customer=self.cancelled_by_customer,
                restaurant_note=self.restaurant_note,
            )
        )
        return old_status

    def mark_persisted(self) -> None:
        """Accept the in-memory status as the stored one."""
        self._loaded_status = self.status
        if hasattr(self, "_transition_from"):
            del self._transition_from

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_immutable_fields(self) -> None:
        loaded_mode = getattr(self, "_loaded_fulfillment_mode", None)
        if loaded_mode is not None and loaded_mode != self.fulfillment_mode:
            raise ValidationError(
                {"fulfillment_mode": "Fulfillment mode cannot change after creation."}
            )

        loaded_status = getattr(self, "_loaded_status", None)
        if (
            loaded_status is not None
            and loaded_status != self.status
            and getattr(self, "_transition_from", None) != loaded_status
        ):
            raise InvalidOrderStatus(
                "Order status can only change through a validated transition."
            )

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def format_order_number(sequence: int) -> str:
        """Human-readable order number: ``ORD-000042``."""
        return f"{ORDER_NUMBER_PREFIX}-{sequence:06d}"

    @classmethod
    def next_sequence(cls) -> int:
        last = (
            cls.objects.order_by("-order_sequence")
            .values_list("order_sequence", flat=True)
            .first()
        )
        return (last or 0) + 1

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        self._check_immutable_fields()
        if self.order_number:
            super().save(*args, **kwargs)
            self.mark_persisted()
            self._loaded_fulfillment_mode = self.fulfillment_mode
            return

        for attempt in range(ORDER_NUMBER_MAX_RETRIES):
            self.order_sequence = self.next_sequence()
            self.order_number = self.format_order_number(self.order_sequence)
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
            except IntegrityError:
                logger.warning(
                    "order.number_collision",
                    order_number=self.order_number,
                    attempt=attempt + 1,
                )
                self.order_number = ""
                continue
            self.mark_persisted()
            self._loaded_fulfillment_mode = self.fulfillment_mode
            return

        raise RuntimeError(
            f"Failed to generate unique order_number after "
            f"{ORDER_NUMBER_MAX_RETRIES} attempts"
        )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item of an order.

    ``name``, ``size`` and ``unit_price`` are a **snapshot** of the dish at
    checkout time.  ``total_price`` is always ``quantity * unit_price``,
    recalculated on every save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    name: models.CharField = models.CharField(max_length=255)
    size: models.CharField = models.CharField(max_length=50, blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    total_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        editable=False,
    )
    position: models.PositiveIntegerField = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "order_items"
        ordering = ["position", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total_price = self.quantity * Decimal(self.unit_price)
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        size = f" ({self.size})" if self.size else ""
        return f"{self.name}{size} x{self.quantity} (${self.total_price})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    Audit records are immutable.  ``changed_by`` is nullable: ``None`` means
    the change was performed by the system (e.g. seed data).
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    changed_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"

"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Order creation is wrapped in ``transaction.atomic()`` so the Order
aggregate (Order + OrderItems + initial history) is persisted atomically.

Status writes are conditional on the status read by the caller
(``UPDATE ... WHERE id = %s AND status = %s``); callers additionally hold a
``select_for_update()`` row lock where the backend supports it.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.orders.constants import FulfillmentMode, OrderStatus
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import ConcurrentStatusChange
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, dto: CreateOrderDTO) -> Order:
        """Create an order with its items atomically.

        Financials are computed here once:
        ``total = subtotal + tax_amount + (delivery_fee if delivery else 0)``.
        """
        subtotal = sum(
            (item.unit_price * item.quantity for item in dto.items),
            Decimal("0.00"),
        ).quantize(CENT)
        tax_rate = dto.tax_rate
        if tax_rate is None:
            tax_rate = Decimal(str(settings.ORDER_DEFAULT_TAX_RATE))
        tax_amount = (subtotal * tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)

        if dto.fulfillment_mode == FulfillmentMode.DELIVERY:
            delivery_fee = dto.delivery_fee
            if delivery_fee is None:
                delivery_fee = Decimal(str(settings.ORDER_DEFAULT_DELIVERY_FEE))
            delivery_fee = delivery_fee.quantize(CENT)
            delivery_address = dto.delivery_address
        else:
            delivery_fee = None
            delivery_address = None

        order = Order(
            restaurant_id=dto.restaurant_id,
            customer_id=dto.customer_id,
            fulfillment_mode=dto.fulfillment_mode,
            delivery_address=delivery_address,
            subtotal=subtotal,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            delivery_fee=delivery_fee,
            total_amount=subtotal + tax_amount + (delivery_fee or Decimal("0.00")),
            customer_note=dto.customer_note,
        )
        order.save()

        for position, item in enumerate(dto.items):
            OrderItem(
                order=order,
                name=item.name,
                size=item.size,
                quantity=item.quantity,
                unit_price=item.unit_price,
                position=position,
            ).save()

        self.add_history(
            order_id=order.id,
            status=OrderStatus.NEW,
            notes="Order created",
            old_status=None,
        )

        logger.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(dto.items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet[Order]:
        return Order.objects.select_related("customer", "restaurant").prefetch_related(
            "items", "status_history"
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        return self._first(self._base_queryset(), id=id)

    def get_for_restaurant(
        self, id: str, restaurant_id: UUID, for_update: bool = False
    ) -> Optional[Order]:
        return self._first(
            self._owned_queryset(for_update), id=id, restaurant_id=restaurant_id
        )

    def get_for_customer(
        self, id: str, customer_id: UUID, for_update: bool = False
    ) -> Optional[Order]:
        return self._first(
            self._owned_queryset(for_update), id=id, customer_id=customer_id
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders newest first; ties on ``created_at`` break on ``id``.

        Supported filter keys are any ``Order`` field lookups, e.g.
        ``restaurant_id``, ``customer_id``, ``status``.
        """
        queryset = self._base_queryset().order_by("-created_at", "-id")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def _owned_queryset(self, for_update: bool) -> QuerySet[Order]:
        if for_update:
            # Row lock only; relations are loaded lazily by the caller.
            return Order.objects.select_for_update()
        return self._base_queryset()

    @staticmethod
    def _first(queryset: QuerySet[Order], **lookups: Any) -> Optional[Order]:
        try:
            return queryset.filter(**lookups).first()
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Status writes
    # ------------------------------------------------------------------

    def save_transition(self, order: Order, expected_status: str) -> Order:
        """Conditionally persist the status fields of *order*."""
        now = timezone.now()
        updated = Order.objects.filter(id=order.id, status=expected_status).update(
            status=order.status,
            restaurant_note=order.restaurant_note,
            cancelled_by_customer=order.cancelled_by_customer,
            updated_at=now,
        )
        if updated != 1:
            logger.warning(
                "order.concurrent_status_change",
                order_id=str(order.id),
                expected_status=expected_status,
            )
            raise ConcurrentStatusChange(
                f"Order {order.id} is no longer in status {expected_status}."
            )

        order.updated_at = now
        order.mark_persisted()
        logger.info(
            "order.saved",
            order_id=str(order.id),
            status=order.status,
        )
        return order

    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by: Any = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            changed_by=changed_by,
        )
        history.save()

        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

"""Integration tests for OrderService status transitions.

Covers:
- Persistence of status, history and the queued notification.
- Nothing is written when validation fails.
- A failed write rolls back the whole transition.
- A failing notifier never undoes a committed change.
- Full delivery and pickup lifecycles.
- Cancellation note and attribution after an order is reopened.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from django.db import DatabaseError

from modules.core.models import EventStatus, OutboxEvent
from modules.orders.constants import FulfillmentMode, OrderStatus
from modules.orders.exceptions import (
    InvalidTransition,
    MissingCancellationNote,
    NoOpTransition,
    OrderNotFound,
    OrderPersistenceError,
)
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.notifications import OutboxStatusNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

pytestmark = pytest.mark.integration

User = get_user_model()


@pytest.fixture()
def service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        notifier=OutboxStatusNotifier(),
        lock_terminal_states=False,
    )


def _history(order):
    return list(
        OrderStatusHistory.objects.filter(order=order)
        .order_by("created_at", "id")
        .values_list("old_status", "new_status", "notes")
    )


class TestSuccessfulTransition:
    def test_status_history_and_outbox(self, service, delivery_order, restaurant):
        result = service.transition_status(
            delivery_order.id,
            restaurant.id,
            "received",
            changed_by=restaurant.owner,
        )

        stored = Order.objects.get(pk=delivery_order.pk)
        assert stored.status == OrderStatus.RECEIVED
        assert stored.updated_at > delivery_order.updated_at
        assert result.message == "Order status updated from new to received successfully"

        assert _history(stored) == [
            (None, "new", "Order created"),
            ("new", "received", ""),
        ]
        latest = OrderStatusHistory.objects.filter(order=stored).first()
        assert latest.changed_by == restaurant.owner

        [row] = OutboxEvent.objects.filter(aggregate_id=str(stored.id))
        assert row.event_type == "OrderStatusChanged"
        assert row.topic == "order-status"
        assert row.status == EventStatus.PENDING
        assert row.payload["order_id"] == str(stored.id)
        assert row.payload["order_number"] == stored.order_number
        assert row.payload["previous_status_label"] == "New"
        assert row.payload["new_status_label"] == "Received"
        assert "timestamp" in row.payload

    def test_restaurant_cancellation(self, service, delivery_order, restaurant):
        service.transition_status(
            delivery_order.id, restaurant.id, "cancelled", note="Kitchen fire drill"
        )

        stored = Order.objects.get(pk=delivery_order.pk)
        assert stored.status == OrderStatus.CANCELLED
        assert stored.restaurant_note == "Kitchen fire drill"
        assert stored.cancelled_by_customer is False
        assert _history(stored)[-1] == ("new", "cancelled", "Kitchen fire drill")

    def test_full_delivery_lifecycle(self, service, delivery_order, restaurant):
        for status in ["received", "preparing", "on_the_way", "delivered"]:
            service.transition_status(delivery_order.id, restaurant.id, status)

        stored = Order.objects.get(pk=delivery_order.pk)
        assert stored.status == OrderStatus.DELIVERED
        assert len(_history(stored)) == 5
        assert OutboxEvent.objects.filter(aggregate_id=str(stored.id)).count() == 4

    def test_full_pickup_lifecycle(self, service, pickup_order, restaurant):
        for status in ["received", "preparing", "pickup_ready", "picked_up"]:
            service.transition_status(pickup_order.id, restaurant.id, status)

        assert Order.objects.get(pk=pickup_order.pk).status == OrderStatus.PICKED_UP

    def test_terminal_status_can_be_corrected(self, service, delivery_order, restaurant):
        service.transition_status(delivery_order.id, restaurant.id, "delivered")
        service.transition_status(delivery_order.id, restaurant.id, "on_the_way")

        assert Order.objects.get(pk=delivery_order.pk).status == OrderStatus.ON_THE_WAY


class TestCancellationAttribution:
    """Reopened orders carry no note or attribution from an earlier cancellation."""

    def test_customer_then_restaurant_cancellation(
        self, service, delivery_order, restaurant, customer
    ):
        service.cancel_by_customer(delivery_order.id, customer.id)
        service.transition_status(delivery_order.id, restaurant.id, "new")

        reopened = Order.objects.get(pk=delivery_order.pk)
        assert reopened.cancelled_by_customer is False

        service.transition_status(
            delivery_order.id, restaurant.id, "cancelled", note="Out of stock"
        )

        stored = Order.objects.get(pk=delivery_order.pk)
        assert stored.cancelled_by_customer is False
        assert stored.restaurant_note == "Out of stock"
        latest = (
            OutboxEvent.objects.filter(aggregate_id=str(stored.id))
            .order_by("created_at", "id")
            .last()
        )
        assert latest.payload["cancelled_by_customer"] is False
        assert latest.payload["restaurant_note"] == "Out of stock"

    def test_restaurant_then_customer_cancellation(
        self, service, delivery_order, restaurant, customer
    ):
        service.transition_status(
            delivery_order.id, restaurant.id, "cancelled", note="Kitchen closed"
        )
        service.transition_status(delivery_order.id, restaurant.id, "new")

        assert Order.objects.get(pk=delivery_order.pk).restaurant_note == ""

        service.cancel_by_customer(delivery_order.id, customer.id)

        stored = Order.objects.get(pk=delivery_order.pk)
        assert stored.cancelled_by_customer is True
        assert stored.restaurant_note == ""
        latest = (
            OutboxEvent.objects.filter(aggregate_id=str(stored.id))
            .order_by("created_at", "id")
            .last()
        )
        assert latest.payload["cancelled_by_customer"] is True
        assert latest.payload["restaurant_note"] == ""
        assert _history(stored)[-1] == ("new", "cancelled", "Cancelled by customer")


class TestRejectedTransition:
    def _assert_untouched(self, order):
        stored = Order.objects.get(pk=order.pk)
        assert stored.status == order.status
        assert stored.updated_at == order.updated_at
        assert len(_history(stored)) == 1
        assert not OutboxEvent.objects.filter(aggregate_id=str(order.id)).exists()

    def test_noop(self, service, delivery_order, restaurant):
        with pytest.raises(NoOpTransition):
            service.transition_status(delivery_order.id, restaurant.id, "new")
        self._assert_untouched(delivery_order)

    def test_invalid_for_mode(self, service, pickup_order, restaurant):
        with pytest.raises(InvalidTransition):
            service.transition_status(pickup_order.id, restaurant.id, "on_the_way")
        self._assert_untouched(pickup_order)

    def test_missing_note(self, service, delivery_order, restaurant):
        with pytest.raises(MissingCancellationNote):
            service.transition_status(delivery_order.id, restaurant.id, "cancelled")
        self._assert_untouched(delivery_order)

    def test_other_restaurants_order(self, service, delivery_order, make_restaurant):
        other = make_restaurant("Taco Express")
        with pytest.raises(OrderNotFound):
            service.transition_status(delivery_order.id, other.id, "received")
        self._assert_untouched(delivery_order)

    def test_terminal_lock(self, delivery_order, restaurant):
        service = OrderService(
            OrderDjangoRepository(), OutboxStatusNotifier(), lock_terminal_states=True
        )
        service.transition_status(delivery_order.id, restaurant.id, "delivered")

        with pytest.raises(InvalidTransition):
            service.transition_status(delivery_order.id, restaurant.id, "preparing")

        assert Order.objects.get(pk=delivery_order.pk).status == OrderStatus.DELIVERED


class TestFailureHandling:
    def test_history_failure_rolls_back_status(self, service, delivery_order, restaurant):
        with patch.object(
            OrderDjangoRepository,
            "add_history",
            side_effect=DatabaseError("history table locked"),
        ):
            with pytest.raises(OrderPersistenceError):
                service.transition_status(delivery_order.id, restaurant.id, "received")

        stored = Order.objects.get(pk=delivery_order.pk)
        assert stored.status == OrderStatus.NEW
        assert not OutboxEvent.objects.filter(aggregate_id=str(stored.id)).exists()

    def test_notifier_failure_keeps_committed_change(
        self, service, delivery_order, restaurant
    ):
        with patch.object(
            OutboxStatusNotifier, "publish", side_effect=RuntimeError("broker down")
        ):
            result = service.transition_status(
                delivery_order.id, restaurant.id, "preparing"
            )

        assert result.new_status == "preparing"
        assert Order.objects.get(pk=delivery_order.pk).status == OrderStatus.PREPARING
        assert len(_history(delivery_order)) == 2


@pytest.mark.parametrize("mode", [FulfillmentMode.DELIVERY, FulfillmentMode.PICKUP])
def test_every_valid_status_is_reachable_from_new(service, make_order, restaurant, mode):
    sample = make_order(mode)
    for status in sample.valid_statuses:
        if status == OrderStatus.NEW:
            continue
        order = make_order(mode)
        note = "Closing" if status == OrderStatus.CANCELLED else None
        service.transition_status(order.id, restaurant.id, status, note=note)
        assert Order.objects.get(pk=order.pk).status == status

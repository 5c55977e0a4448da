"""Integration tests for the customer order endpoints.

Covers:
- GET /api/v1/customer/orders/ and /{id}/ (own orders only).
- POST /api/v1/customer/orders/{id}/cancel/ (before preparation only).
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.notifications import OutboxStatusNotifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

pytestmark = pytest.mark.integration

LIST_URL = "/api/v1/customer/orders/"


def _cancel_url(order_id) -> str:
    return f"{LIST_URL}{order_id}/cancel/"


@pytest.fixture()
def service():
    return OrderService(OrderDjangoRepository(), OutboxStatusNotifier())


class TestCustomerReads:
    def test_lists_own_orders(self, customer_client, make_order, make_customer):
        mine = make_order()
        make_order(customer=make_customer("Bruno", "Lima"))

        response = customer_client.get(LIST_URL)

        assert response.status_code == 200
        assert [o["id"] for o in response.data["results"]] == [str(mine.id)]

    def test_retrieve_own_order(self, customer_client, delivery_order):
        response = customer_client.get(f"{LIST_URL}{delivery_order.id}/")

        assert response.status_code == 200
        assert response.data["order_number"] == delivery_order.order_number

    def test_cannot_see_other_customers_order(self, api_client, delivery_order, make_customer):
        other = make_customer("Carla", "Mendes")
        api_client.force_authenticate(user=other.user)

        response = api_client.get(f"{LIST_URL}{delivery_order.id}/")

        assert response.status_code == 404

    def test_restaurants_are_forbidden(self, restaurant_client):
        response = restaurant_client.get(LIST_URL)
        assert response.status_code == 403


class TestCustomerCancel:
    @pytest.mark.parametrize("prior", [None, "received"])
    def test_cancel_before_preparation(
        self, customer_client, delivery_order, restaurant, service, prior
    ):
        if prior:
            service.transition_status(delivery_order.id, restaurant.id, prior)

        response = customer_client.post(_cancel_url(delivery_order.id))

        assert response.status_code == 200
        assert response.data["order"]["status"] == "cancelled"
        assert response.data["order"]["cancelled_by_customer"] is True
        stored = Order.objects.get(pk=delivery_order.pk)
        assert stored.status == OrderStatus.CANCELLED
        assert stored.cancelled_by_customer is True
        latest = OrderStatusHistory.objects.filter(order=stored).first()
        assert latest.notes == "Cancelled by customer"
        assert latest.changed_by == stored.customer.user
        assert OutboxEvent.objects.filter(
            aggregate_id=str(stored.id), payload__new_status="cancelled"
        ).exists()

    def test_cannot_cancel_once_preparing(
        self, customer_client, delivery_order, restaurant, service
    ):
        service.transition_status(delivery_order.id, restaurant.id, "preparing")

        response = customer_client.post(_cancel_url(delivery_order.id))

        assert response.status_code == 400
        assert "can no longer be cancelled" in response.data["detail"]
        assert Order.objects.get(pk=delivery_order.pk).status == OrderStatus.PREPARING

    def test_cancel_twice(self, customer_client, delivery_order):
        customer_client.post(_cancel_url(delivery_order.id))

        response = customer_client.post(_cancel_url(delivery_order.id))

        assert response.status_code == 400
        assert response.data["detail"] == (
            "Order status is already 'cancelled'. Choose another status for update."
        )

    def test_cannot_cancel_other_customers_order(
        self, api_client, delivery_order, make_customer
    ):
        other = make_customer("Daniel", "Costa")
        api_client.force_authenticate(user=other.user)

        response = api_client.post(_cancel_url(delivery_order.id))

        assert response.status_code == 404
        assert Order.objects.get(pk=delivery_order.pk).status == OrderStatus.NEW

    def test_unknown_order(self, customer_client):
        response = customer_client.post(_cancel_url(uuid4()))
        assert response.status_code == 404

    def test_requires_authentication(self, api_client, delivery_order):
        response = api_client.post(_cancel_url(delivery_order.id))
        assert response.status_code == 401

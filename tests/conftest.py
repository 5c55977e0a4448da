from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.orders.constants import FulfillmentMode
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.restaurants.models import Restaurant, RestaurantStatus

User = get_user_model()

ADDRESS = {"street": "742 Evergreen Terrace", "city": "Springfield", "zip_code": "62704"}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_restaurant():
    def _make(name: str = "Luigi's Trattoria", username: str | None = None):
        username = username or name.lower().replace(" ", "-").replace("'", "")
        owner = User.objects.create_user(username=username, password="testpass123")
        return Restaurant.objects.create(
            owner=owner,
            name=name,
            email=f"{username}@example.com",
            phone="+1 555 0100",
            status=RestaurantStatus.ACTIVE,
        )

    return _make


@pytest.fixture()
def make_customer():
    def _make(first_name: str = "Ana", last_name: str = "Souza"):
        username = f"{first_name}.{last_name}".lower()
        user = User.objects.create_user(username=username, password="testpass123")
        return Customer.objects.create(
            user=user,
            first_name=first_name,
            last_name=last_name,
            email=f"{username}@example.com",
            phone="+1 555 0199",
        )

    return _make


@pytest.fixture()
def restaurant(make_restaurant):
    return make_restaurant()


@pytest.fixture()
def customer(make_customer):
    return make_customer()


@pytest.fixture()
def restaurant_client(restaurant):
    client = APIClient()
    client.force_authenticate(user=restaurant.owner)
    return client


@pytest.fixture()
def customer_client(customer):
    client = APIClient()
    client.force_authenticate(user=customer.user)
    return client


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order(restaurant, customer):
    """Create an order through the repository (the only creation path)."""

    def _make(
        fulfillment_mode: str = FulfillmentMode.DELIVERY,
        items: list[CreateOrderItemDTO] | None = None,
        restaurant=restaurant,
        customer=customer,
        **overrides,
    ):
        if items is None:
            items = [
                CreateOrderItemDTO(
                    name="Margherita Pizza",
                    size="Large",
                    unit_price=Decimal("14.50"),
                    quantity=2,
                ),
                CreateOrderItemDTO(
                    name="Iced Tea", unit_price=Decimal("2.95"), quantity=1
                ),
            ]
        data = {
            "restaurant_id": restaurant.id,
            "customer_id": customer.id,
            "fulfillment_mode": fulfillment_mode,
            "items": items,
            "delivery_address": ADDRESS,
            "customer_note": "Extra napkins, please",
        }
        data.update(overrides)
        return OrderDjangoRepository().create(CreateOrderDTO(**data))

    return _make


@pytest.fixture()
def delivery_order(make_order):
    return make_order(FulfillmentMode.DELIVERY)


@pytest.fixture()
def pickup_order(make_order):
    return make_order(FulfillmentMode.PICKUP)

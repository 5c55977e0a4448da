from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.customers.models import Customer
from modules.orders.constants import FulfillmentMode, OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.models import Order
from modules.orders.notifications import EventBusStatusNotifier
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.restaurants.models import Restaurant, RestaurantStatus
from shared.infrastructure.bus import event_bus

MENU = [
    ("Margherita Pizza", "Large", Decimal("14.50")),
    ("Pepperoni Pizza", "Medium", Decimal("12.00")),
    ("Caesar Salad", "", Decimal("8.75")),
    ("Chicken Burrito", "", Decimal("10.25")),
    ("Pad Thai", "Regular", Decimal("11.90")),
    ("Veggie Burger", "", Decimal("9.50")),
    ("Garlic Bread", "", Decimal("4.00")),
    ("Iced Tea", "Large", Decimal("2.95")),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        restaurants = self._seed_restaurants()
        customers = self._seed_customers()
        orders_created = self._seed_orders(restaurants, customers)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"restaurants={len(restaurants)}, "
                f"customers={len(customers)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        return created

    def _get_user(self, username: str, password: str):
        User = get_user_model()
        user, created = User.objects.get_or_create(username=username)
        if created:
            user.set_password(password)
            user.save()
        return user

    def _seed_restaurants(self) -> list[Restaurant]:
        self.stdout.write("Creating restaurants...")
        restaurants: list[Restaurant] = []
        seed_restaurants = [
            ("Luigi's Trattoria", "luigi@example.com", True, True),
            ("Green Bowl", "greenbowl@example.com", False, True),
            ("Taco Express", "tacos@example.com", True, False),
        ]
        for name, email, delivery, pickup in seed_restaurants:
            owner = self._get_user(email.split("@")[0], "restaurant123")
            restaurant, _ = Restaurant.objects.get_or_create(
                email=email,
                defaults={
                    "owner": owner,
                    "name": name,
                    "phone": "+1 555 0100",
                    "offers_delivery": delivery,
                    "offers_pickup": pickup,
                    "status": RestaurantStatus.ACTIVE,
                },
            )
            restaurants.append(restaurant)
        self.stdout.write(self.style.SUCCESS("Creating restaurants... Done!"))
        return restaurants

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        customers: list[Customer] = []
        seed_customers = [
            ("Ana", "Souza", "ana@example.com"),
            ("Bruno", "Lima", "bruno@example.com"),
            ("Carla", "Mendes", "carla@example.com"),
            ("Daniel", "Costa", "daniel@example.com"),
            ("Helena", "Ferreira", "helena@example.com"),
        ]
        for first_name, last_name, email in seed_customers:
            user = self._get_user(first_name.lower(), "customer123")
            customer, _ = Customer.objects.get_or_create(
                email=email,
                defaults={
                    "user": user,
                    "first_name": first_name,
                    "last_name": last_name,
                    "phone": f"+1 555 01{random.randint(10, 99)}",
                },
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_orders(
        self, restaurants: list[Restaurant], customers: list[Customer]
    ) -> int:
        self.stdout.write("Creating orders...")
        if not restaurants or not customers:
            self.stdout.write(
                self.style.WARNING("Skipping orders (no restaurants/customers).")
            )
            return 0
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Orders already seeded."))
            return 0

        repository = OrderDjangoRepository()
        service = OrderService(
            order_repository=repository,
            notifier=EventBusStatusNotifier(event_bus),
            lock_terminal_states=False,
        )

        orders_created = 0
        for i in range(30):
            restaurant = random.choice(restaurants)
            modes = []
            if restaurant.offers_delivery:
                modes.append(FulfillmentMode.DELIVERY)
            if restaurant.offers_pickup:
                modes.append(FulfillmentMode.PICKUP)
            mode = random.choice(modes)

            items = [
                CreateOrderItemDTO(
                    name=name,
                    size=size,
                    unit_price=price,
                    quantity=random.randint(1, 3),
                )
                for name, size, price in random.sample(MENU, k=random.randint(1, 4))
            ]
            order = repository.create(
                CreateOrderDTO(
                    restaurant_id=restaurant.id,
                    customer_id=random.choice(customers).id,
                    fulfillment_mode=mode,
                    items=items,
                    delivery_address={
                        "street": f"{random.randint(1, 999)} Main St",
                        "city": "Springfield",
                        "zip_code": "62701",
                    },
                    customer_note=f"Seed order {i + 1}",
                )
            )

            target = random.choice(
                [s for s in order.valid_statuses if s != OrderStatus.NEW]
                + [OrderStatus.NEW]
            )
            if target != OrderStatus.NEW:
                service.transition_status(
                    order_id=order.id,
                    restaurant_id=restaurant.id,
                    requested_status=target,
                    note="Kitchen closed early" if target == OrderStatus.CANCELLED else None,
                )

            created_at = timezone.now() - timedelta(days=random.randint(0, 30))
            Order.objects.filter(id=order.id).update(created_at=created_at)
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created

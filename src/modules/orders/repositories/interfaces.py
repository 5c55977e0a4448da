"""Order repository interface.

Extends ``IRepository[Order]`` with the look-ups and writes required by
the order lifecycle: owner-scoped reads, a locked read for transitions,
a conditional status write, and the audit trail.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, dto: CreateOrderDTO) -> Order:
        """Create an order with its items and computed financials."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet[Order]:
        """List orders (newest first) with optional field filters."""

    @abstractmethod
    def get_for_restaurant(
        self, id: str, restaurant_id: UUID, for_update: bool = False
    ) -> Optional[Order]:
        """Retrieve an order owned by *restaurant_id*."""

    @abstractmethod
    def get_for_customer(
        self, id: str, customer_id: UUID, for_update: bool = False
    ) -> Optional[Order]:
        """Retrieve an order placed by *customer_id*."""

    @abstractmethod
    def save_transition(self, order: Order, expected_status: str) -> Order:
        """Persist a status change only if the stored status is still *expected_status*.

        Raises ``ConcurrentStatusChange`` when no row matched.
        """

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by: Any = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

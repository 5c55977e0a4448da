"""DRF permission for endpoints acting on behalf of a customer."""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.customers.models import Customer


def get_acting_customer(user) -> Customer | None:
    """Return the customer profile of *user*, or ``None``."""
    if not getattr(user, "is_authenticated", False):
        return None
    try:
        return user.customer
    except Customer.DoesNotExist:
        return None


class IsCustomer(BasePermission):
    message = "Only customer accounts can access customer orders."

    def has_permission(self, request, view) -> bool:
        return get_acting_customer(request.user) is not None

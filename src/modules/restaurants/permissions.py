"""DRF permission for endpoints acting on behalf of a restaurant."""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.restaurants.models import Restaurant


def get_acting_restaurant(user) -> Restaurant | None:
    """Return the restaurant owned by *user*, or ``None``."""
    if not getattr(user, "is_authenticated", False):
        return None
    try:
        return user.restaurant
    except Restaurant.DoesNotExist:
        return None


class IsRestaurantOwner(BasePermission):
    message = "Only restaurant accounts can manage restaurant orders."

    def has_permission(self, request, view) -> bool:
        return get_acting_restaurant(request.user) is not None

"""Restaurant model.

A restaurant is the owner of the orders placed with it.  The acting
restaurant of an API request is resolved from the authenticated Django user
through the one-to-one ``owner`` link (``request.user.restaurant``).
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class RestaurantStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Restaurant(BaseModel):
    """Restaurant account that receives and fulfils orders."""

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="restaurant",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    phone = models.CharField(max_length=20, blank=True, default="")
    offers_delivery = models.BooleanField(default=True)
    offers_pickup = models.BooleanField(default=True)
    status = models.CharField(
        max_length=10,
        choices=RestaurantStatus.choices,
        default=RestaurantStatus.INACTIVE,
    )

    class Meta:
        db_table = "restaurants"
        ordering = ["name"]

    @property
    def is_active(self) -> bool:
        return self.status == RestaurantStatus.ACTIVE

    def __str__(self) -> str:
        return self.name

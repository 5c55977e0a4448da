"""Customer model.

The ordering customer of an API request is resolved from the authenticated
Django user through the one-to-one ``user`` link (``request.user.customer``).
Contact data is masked in ``__str__`` so it never lands verbatim in logs.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class Customer(BaseModel):
    """Customer account that places orders and receives status updates."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer",
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=254, unique=True)
    phone = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        local, _, domain = self.email.partition("@")
        return f"{self.full_name} ({local[:1]}***@{domain})"

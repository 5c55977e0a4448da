"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

- ``CreateOrderItemDTO``: a dish snapshot taken at checkout.
- ``CreateOrderDTO``: input for order creation (nested items).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import FulfillmentMode

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single line item.

    ``name``, ``size`` and ``unit_price`` are copied from the menu at
    checkout time and never re-read.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    size: str = ""
    unit_price: Decimal
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Unit price cannot be negative.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation.

    Validates:
    - ``items`` must contain at least one item.
    - Delivery orders carry a delivery address.

    ``tax_rate`` and ``delivery_fee`` fall back to the configured defaults.
    """

    model_config = ConfigDict(frozen=True)

    restaurant_id: UUID
    customer_id: UUID
    fulfillment_mode: FulfillmentMode
    items: List[CreateOrderItemDTO]
    delivery_address: Optional[Dict[str, Any]] = None
    customer_note: str = ""
    tax_rate: Optional[Decimal] = None
    delivery_fee: Optional[Decimal] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def delivery_needs_address(self):
        if self.fulfillment_mode == FulfillmentMode.DELIVERY and not self.delivery_address:
            raise ValueError("Delivery orders require a delivery address.")
        return self

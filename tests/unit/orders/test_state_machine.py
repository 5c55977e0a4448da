"""Unit tests for the order status state machine.

Covers:
- Status label formatting.
- Valid-status sets per fulfillment mode.
- No-op, out-of-mode and permissive transitions.
- The optional terminal-state lock.
"""

from __future__ import annotations

import pytest

from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_STATUSES,
    FulfillmentMode,
    OrderStatus,
)
from modules.orders.exceptions import (
    InvalidOrderStatus,
    InvalidTransition,
    NoOpTransition,
)
from modules.orders.state_machine import (
    format_status_label,
    is_terminal,
    valid_statuses_for,
    validate_transition,
)

pytestmark = pytest.mark.unit

DELIVERY = FulfillmentMode.DELIVERY
PICKUP = FulfillmentMode.PICKUP


class TestFormatStatusLabel:
    @pytest.mark.parametrize(
        "status, label",
        [
            ("new", "New"),
            ("on_the_way", "On The Way"),
            ("pickup_ready", "Pickup Ready"),
            ("picked_up", "Picked Up"),
            ("cancelled", "Cancelled"),
        ],
    )
    def test_splits_on_underscore_and_capitalizes(self, status, label):
        assert format_status_label(status) == label

    def test_accepts_enum_members(self):
        assert format_status_label(OrderStatus.ON_THE_WAY) == "On The Way"


class TestValidStatuses:
    def test_delivery_set(self):
        assert list(valid_statuses_for(DELIVERY)) == [
            "new",
            "received",
            "preparing",
            "on_the_way",
            "delivered",
            "cancelled",
        ]

    def test_pickup_set(self):
        assert list(valid_statuses_for(PICKUP)) == [
            "new",
            "received",
            "preparing",
            "pickup_ready",
            "picked_up",
            "cancelled",
        ]

    def test_modes_do_not_share_fulfillment_steps(self):
        assert OrderStatus.ON_THE_WAY not in VALID_STATUSES[PICKUP]
        assert OrderStatus.PICKUP_READY not in VALID_STATUSES[DELIVERY]

    def test_unknown_mode_rejected(self):
        with pytest.raises(InvalidTransition, match="Unknown fulfillment mode"):
            valid_statuses_for("drone")

    def test_terminal_states(self):
        assert TERMINAL_STATES == {"delivered", "picked_up", "cancelled"}
        assert is_terminal("delivered")
        assert not is_terminal("preparing")


class TestValidateTransition:
    def test_noop_is_rejected_before_membership(self):
        with pytest.raises(NoOpTransition) as exc_info:
            validate_transition("received", "received", DELIVERY)
        assert str(exc_info.value) == (
            "Order status is already 'received'. Choose another status for update."
        )

    def test_noop_is_an_invalid_order_status(self):
        with pytest.raises(InvalidOrderStatus):
            validate_transition("new", "new", PICKUP)

    def test_pickup_status_on_delivery_order(self):
        with pytest.raises(InvalidTransition) as exc_info:
            validate_transition("preparing", "pickup_ready", DELIVERY)
        assert str(exc_info.value) == "Invalid status for 'delivery' order"
        assert exc_info.value.valid_statuses == list(VALID_STATUSES[DELIVERY])

    def test_delivery_status_on_pickup_order(self):
        with pytest.raises(InvalidTransition) as exc_info:
            validate_transition("preparing", "on_the_way", PICKUP)
        assert str(exc_info.value) == "Invalid status for 'pickup' order"
        assert "pickup_ready" in exc_info.value.valid_statuses

    def test_unknown_status(self):
        with pytest.raises(InvalidTransition):
            validate_transition("new", "eaten", DELIVERY)

    @pytest.mark.parametrize(
        "current, requested",
        [
            ("new", "delivered"),  # skip forward
            ("on_the_way", "received"),  # go back
            ("new", "cancelled"),
            ("delivered", "preparing"),  # leave a terminal status
            ("cancelled", "new"),
        ],
    )
    def test_permissive_within_mode(self, current, requested):
        validate_transition(current, requested, DELIVERY)

    def test_lock_rejects_leaving_terminal(self):
        with pytest.raises(InvalidTransition, match="can no longer change status"):
            validate_transition("picked_up", "preparing", PICKUP, lock_terminal=True)

    def test_lock_allows_non_terminal_moves(self):
        validate_transition("preparing", "cancelled", PICKUP, lock_terminal=True)

    def test_lock_still_reports_noop_first(self):
        with pytest.raises(NoOpTransition):
            validate_transition("cancelled", "cancelled", PICKUP, lock_terminal=True)

"""Order status state machine.

The transition graph is deliberately permissive: within a fulfillment mode
any status other than the current one may be requested, so a restaurant can
skip steps (``new -> delivered``) or correct a mistake.  Setting
``ORDERS_LOCK_TERMINAL_STATES`` closes the terminal statuses.
"""

from __future__ import annotations

from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_STATUSES,
    FulfillmentMode,
)
from modules.orders.exceptions import InvalidTransition, NoOpTransition


def format_status_label(status: str) -> str:
    """Human-readable label for a status token: ``on_the_way`` -> ``On The Way``."""
    return " ".join(word[:1].upper() + word[1:] for word in str(status).split("_"))


def valid_statuses_for(mode: str) -> tuple[str, ...]:
    """Statuses an order of the given fulfillment mode may hold."""
    try:
        return VALID_STATUSES[FulfillmentMode(mode)]
    except ValueError:
        raise InvalidTransition(f"Unknown fulfillment mode '{mode}'.") from None


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def validate_transition(
    current: str,
    requested: str,
    mode: str,
    *,
    lock_terminal: bool = False,
) -> None:
    """Raise if *current* -> *requested* is not allowed for *mode*.

    Raises:
        NoOpTransition: *requested* equals *current*.
        InvalidTransition: *requested* is not a status of *mode*, or the
            order is terminal and ``lock_terminal`` is set.
    """
    if requested == current:
        raise NoOpTransition(requested)

    valid = valid_statuses_for(mode)
    if requested not in valid:
        raise InvalidTransition(
            f"Invalid status for '{mode}' order", valid_statuses=valid
        )

    if lock_terminal and is_terminal(current):
        raise InvalidTransition(
            f"Order is already {format_status_label(current)} and can no longer "
            "change status.",
            valid_statuses=valid,
        )

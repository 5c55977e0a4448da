"""Base repository contract shared by the domain modules.

Services receive a repository through their constructor and never touch
the ORM directly, so tests can hand them a mock instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Read side every aggregate repository offers.

    ``T`` is the aggregate root (``Order``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Return the aggregate, or ``None`` for unknown or malformed ids."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """Return aggregates matching the exact-value *filters*."""

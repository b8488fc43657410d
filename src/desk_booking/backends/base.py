# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base Store for the desk booking engine.

This module provides the BaseStore abstract class that defines the storage
interface shared by every backend: users, the coworking settings row and
reservations.

The admission engine relies on two guarantees from every implementation:
- At most one CONFIRMED reservation per ``(user_id, date, slot)``; a second
  insert raises ``UniqueConstraintError``.
- When ``create_reservation`` is given a capacity, the confirmed count for
  ``(date, slot)`` is checked in the same atomic step as the insert and a full
  slot raises ``CapacityExceededError``.
"""

import abc
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, TypeVar

from ..config import BookingConfig
from ..observability.collector import UnifiedMetricsCollector
from ..observability.constants import STORE_LATENCY_SECONDS
from ..types.reservation import (
    Reservation,
    ReservationQuery,
    ReservationStatus,
    Slot,
)
from ..types.settings import CoworkingSettings
from ..types.user import Role, User

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    """
    Structured health check result for store monitoring.

    Attributes:
        healthy: Whether the store is operational
        backend_type: Type of store (e.g., 'redis', 'memory')
        namespace: Store namespace
        error: Error message if unhealthy
        metadata: Additional store-specific information
    """

    healthy: bool
    backend_type: str
    namespace: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


def slot_key(day: date, slot: Slot) -> str:
    """``YYYY-MM-DD/SLOT`` key of the capacity pool for a day and slot."""
    return f"{day.isoformat()}/{slot.value}"


StoreT = TypeVar("StoreT", bound="BaseStore")


class BaseStore(abc.ABC):
    """
    Abstract storage interface for users, settings and reservations.

    Subclasses implement every abstract method. ``start``/``stop`` and the
    async context manager are optional hooks with no-op defaults.
    """

    backend_type = "base"

    def __init__(
        self,
        namespace: str = "desk_booking",
        metrics: UnifiedMetricsCollector | None = None,
    ):
        """
        Initialize the store with a namespace for isolation.

        Args:
            namespace: Namespace for isolating data across deployments
            metrics: Optional collector receiving per-operation latency
        """
        self.namespace = namespace
        self._metrics = metrics

    @classmethod
    def from_config(
        cls: type[StoreT], config: BookingConfig, **kwargs: Any
    ) -> StoreT:
        """
        Build a store whose namespace is ``config.store_namespace``.

        Extra keyword arguments go to the constructor unchanged.
        """
        return cls(namespace=config.store_namespace, **kwargs)

    @contextmanager
    def _timed(self, operation: str) -> Iterator[None]:
        """Record the latency of one store operation."""
        start = time.perf_counter()
        try:
            yield
        finally:
            if self._metrics is not None:
                self._metrics.observe_histogram(
                    STORE_LATENCY_SECONDS,
                    time.perf_counter() - start,
                    labels={"backend": self.backend_type, "operation": operation},
                )

    # ==========================================================================
    # Users
    # ==========================================================================

    @abc.abstractmethod
    async def create_user(
        self,
        email: str,
        first_name: str = "",
        last_name: str = "",
        role: Role = Role.MEMBER,
    ) -> User:
        """
        Create and return a new user.

        Raises:
            StoreOperationError: If a user with the same email exists
        """
        pass

    @abc.abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Get a user by id, None if absent."""
        pass

    @abc.abstractmethod
    async def count_users(self) -> int:
        pass

    # ==========================================================================
    # Settings
    # ==========================================================================

    @abc.abstractmethod
    async def get_settings(self) -> CoworkingSettings | None:
        """Get the settings row, None if it was never created."""
        pass

    @abc.abstractmethod
    async def create_settings(self, settings: CoworkingSettings) -> CoworkingSettings:
        """
        Create the settings row if none exists.

        Returns:
            The stored row. When another caller created it first, that row is
            returned and ``settings`` is discarded.
        """
        pass

    @abc.abstractmethod
    async def update_settings(self, settings: CoworkingSettings) -> CoworkingSettings:
        """Replace the settings row and return it."""
        pass

    # ==========================================================================
    # Reservations
    # ==========================================================================

    @abc.abstractmethod
    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        """Get a reservation by id, None if absent."""
        pass

    @abc.abstractmethod
    async def list_reservations(
        self, query: ReservationQuery | None = None
    ) -> list[Reservation]:
        """
        List reservations matching ``query``.

        Results are ordered by date, then slot (MORNING first), then
        creation time.
        """
        pass

    async def find_reservation(self, query: ReservationQuery) -> Reservation | None:
        """First reservation matching ``query``, None if there is none."""
        matches = await self.list_reservations(query)
        return matches[0] if matches else None

    async def count_reservations(self, query: ReservationQuery | None = None) -> int:
        """Number of reservations matching ``query``."""
        return len(await self.list_reservations(query))

    @abc.abstractmethod
    async def create_reservation(
        self,
        user_id: str,
        day: date,
        slot: Slot,
        capacity: int | None = None,
    ) -> Reservation:
        """
        Atomically insert a CONFIRMED reservation.

        Args:
            user_id: Owner of the booking
            day: Calendar day, already normalized
            slot: Booked slot
            capacity: When set, the insert fails if ``(day, slot)`` already has
                this many confirmed reservations

        Raises:
            UniqueConstraintError: The user already holds a confirmed booking
                for ``(day, slot)``
            CapacityExceededError: ``capacity`` was given and is reached
        """
        pass

    @abc.abstractmethod
    async def update_reservation(
        self,
        reservation_id: str,
        status: ReservationStatus | None = None,
        reminder_sent_at: datetime | None = None,
    ) -> Reservation | None:
        """
        Update a reservation's status and/or reminder stamp.

        Moving to CANCELLED releases the user's active booking for the
        ``(date, slot)`` and its desk. CANCELLED is terminal: asking for
        CONFIRMED on a cancelled reservation raises ``StoreOperationError``.

        Returns:
            The updated reservation, None if the id is unknown
        """
        pass

    @abc.abstractmethod
    async def delete_reservation(self, reservation_id: str) -> bool:
        """Physically remove a reservation. True if something was removed."""
        pass

    # ==========================================================================
    # Maintenance
    # ==========================================================================

    @abc.abstractmethod
    async def health_check(self) -> HealthCheckResult:
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Remove every user, reservation and the settings row."""
        pass

    async def start(self) -> None:
        """Open connections or start background work."""
        logger.debug(f"{type(self).__name__} started")

    async def stop(self) -> None:
        """Stop background work."""
        logger.debug(f"{type(self).__name__} stopped")

    async def cleanup(self) -> None:
        """Release resources held by the store."""
        await self.stop()

    async def __aenter__(self) -> "BaseStore":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.cleanup()


__all__ = ["BaseStore", "HealthCheckResult", "slot_key"]

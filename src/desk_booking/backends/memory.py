# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
MemoryStore for the desk booking engine

This module provides an in-memory store that doesn't require Redis.
Perfect for testing, development, and single-process deployments.
"""

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timezone

from ..exceptions import (
    CapacityExceededError,
    StoreOperationError,
    UniqueConstraintError,
)
from ..observability.collector import UnifiedMetricsCollector
from ..types.reservation import (
    Reservation,
    ReservationQuery,
    ReservationStatus,
    Slot,
    sort_reservations,
)
from ..types.settings import CoworkingSettings
from ..types.user import Role, User
from .base import BaseStore, HealthCheckResult, slot_key

logger = logging.getLogger(__name__)


class MemoryStore(BaseStore):
    """
    An in-memory store for users, settings and reservations.

    Suitable for:
    - Testing and development
    - Single-process deployments

    Key Features:
    - Pure in-memory dict-based storage
    - Unique index on active ``(user_id, date, slot)`` bookings
    - Per-slot confirmed index so capacity checks are O(1)
    - Async-safe operations using asyncio.Lock

    Every mutation happens under one lock, so the capacity check in
    ``create_reservation`` and the insert are atomic with respect to other
    coroutines.

    ``operation_delay`` makes every operation sleep before touching state,
    which lets concurrent callers interleave between their reads and writes
    the way they would against a networked store.

    Note:
        This store is NOT suitable for multi-process deployments.
    """

    backend_type = "memory"

    def __init__(
        self,
        namespace: str = "desk_booking_memory",
        operation_delay: float = 0.0,
        metrics: UnifiedMetricsCollector | None = None,
    ) -> None:
        """
        Initialize the in-memory store.

        Args:
            namespace: Namespace for key isolation (for compatibility)
            operation_delay: Seconds to sleep before each operation
            metrics: Optional collector receiving per-operation latency
        """
        super().__init__(namespace, metrics=metrics)
        if operation_delay < 0:
            raise ValueError("operation_delay must be non-negative")
        self.operation_delay = operation_delay

        self._users: dict[str, User] = {}
        self._user_ids_by_email: dict[str, str] = {}
        self._settings: CoworkingSettings | None = None
        self._reservations: dict[str, Reservation] = {}

        # (user_id, slot_key) -> reservation id, CONFIRMED rows only
        self._active_index: dict[tuple[str, str], str] = {}
        # slot_key -> ids of CONFIRMED rows
        self._confirmed_by_slot: dict[str, set[str]] = {}

        self._lock = asyncio.Lock()

        logger.debug(f"Initialized MemoryStore with namespace '{namespace}'")

    async def _simulate_io(self) -> None:
        if self.operation_delay > 0:
            await asyncio.sleep(self.operation_delay)

    # Users

    async def create_user(
        self,
        email: str,
        first_name: str = "",
        last_name: str = "",
        role: Role = Role.MEMBER,
    ) -> User:
        await self._simulate_io()
        with self._timed("create_user"):
            async with self._lock:
                key = email.lower()
                if key in self._user_ids_by_email:
                    raise StoreOperationError(f"User with email {email} already exists")
                user = User(
                    id=str(uuid.uuid4()),
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    role=role,
                )
                self._users[user.id] = user
                self._user_ids_by_email[key] = user.id
                return replace(user)

    async def get_user(self, user_id: str) -> User | None:
        await self._simulate_io()
        with self._timed("get_user"):
            async with self._lock:
                user = self._users.get(user_id)
                return replace(user) if user else None

    async def count_users(self) -> int:
        await self._simulate_io()
        async with self._lock:
            return len(self._users)

    # Settings

    async def get_settings(self) -> CoworkingSettings | None:
        await self._simulate_io()
        with self._timed("get_settings"):
            async with self._lock:
                return self._settings.model_copy() if self._settings else None

    async def create_settings(self, settings: CoworkingSettings) -> CoworkingSettings:
        await self._simulate_io()
        with self._timed("create_settings"):
            async with self._lock:
                if self._settings is None:
                    self._settings = settings.model_copy()
                    logger.debug(f"Created settings row {settings.id}")
                return self._settings.model_copy()

    async def update_settings(self, settings: CoworkingSettings) -> CoworkingSettings:
        await self._simulate_io()
        with self._timed("update_settings"):
            async with self._lock:
                self._settings = settings.model_copy()
                return self._settings.model_copy()

    # Reservations

    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        await self._simulate_io()
        with self._timed("get_reservation"):
            async with self._lock:
                reservation = self._reservations.get(reservation_id)
                return replace(reservation) if reservation else None

    async def list_reservations(
        self, query: ReservationQuery | None = None
    ) -> list[Reservation]:
        await self._simulate_io()
        with self._timed("list_reservations"):
            async with self._lock:
                query = query or ReservationQuery()
                candidates = self._candidates(query)
                return sort_reservations(
                    [replace(r) for r in candidates if query.matches(r)]
                )

    async def count_reservations(self, query: ReservationQuery | None = None) -> int:
        await self._simulate_io()
        with self._timed("count_reservations"):
            async with self._lock:
                query = query or ReservationQuery()
                return sum(1 for r in self._candidates(query) if query.matches(r))

    def _candidates(self, query: ReservationQuery) -> list[Reservation]:
        """
        Narrow the scan using the confirmed-per-slot index when possible.

        IMPORTANT: Must be called while holding self._lock.
        """
        if (
            query.status is ReservationStatus.CONFIRMED
            and query.date is not None
            and query.slot is not None
        ):
            ids = self._confirmed_by_slot.get(slot_key(query.date, query.slot), set())
            return [self._reservations[i] for i in ids]
        return list(self._reservations.values())

    async def create_reservation(
        self,
        user_id: str,
        day: date,
        slot: Slot,
        capacity: int | None = None,
    ) -> Reservation:
        await self._simulate_io()
        with self._timed("create_reservation"):
            async with self._lock:
                key = slot_key(day, slot)
                if (user_id, key) in self._active_index:
                    raise UniqueConstraintError(user_id, key)

                confirmed = self._confirmed_by_slot.setdefault(key, set())
                if capacity is not None and len(confirmed) >= capacity:
                    raise CapacityExceededError(key, capacity)

                now = datetime.now(timezone.utc)
                reservation = Reservation(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    date=day,
                    slot=slot,
                    status=ReservationStatus.CONFIRMED,
                    created_at=now,
                    updated_at=now,
                )
                self._reservations[reservation.id] = reservation
                self._active_index[(user_id, key)] = reservation.id
                confirmed.add(reservation.id)

                logger.debug(
                    f"Memory store: created reservation {reservation.id} for {key} "
                    f"({len(confirmed)} confirmed)"
                )
                return replace(reservation)

    async def update_reservation(
        self,
        reservation_id: str,
        status: ReservationStatus | None = None,
        reminder_sent_at: datetime | None = None,
    ) -> Reservation | None:
        await self._simulate_io()
        with self._timed("update_reservation"):
            async with self._lock:
                reservation = self._reservations.get(reservation_id)
                if reservation is None:
                    return None

                if status is not None and status is not reservation.status:
                    if reservation.status is ReservationStatus.CANCELLED:
                        raise StoreOperationError(
                            f"Reservation {reservation_id} is cancelled and cannot "
                            f"move to {status.value}"
                        )
                    self._release_locked(reservation)
                    reservation.status = status

                if reminder_sent_at is not None:
                    reservation.reminder_sent_at = reminder_sent_at

                reservation.updated_at = datetime.now(timezone.utc)
                return replace(reservation)

    async def delete_reservation(self, reservation_id: str) -> bool:
        await self._simulate_io()
        with self._timed("delete_reservation"):
            async with self._lock:
                reservation = self._reservations.pop(reservation_id, None)
                if reservation is None:
                    return False
                if reservation.is_confirmed:
                    self._release_locked(reservation)
                return True

    def _release_locked(self, reservation: Reservation) -> None:
        """
        Drop a confirmed reservation from the unique and capacity indexes.

        IMPORTANT: Must be called while holding self._lock.
        """
        key = reservation.slot_key
        if self._active_index.get((reservation.user_id, key)) == reservation.id:
            del self._active_index[(reservation.user_id, key)]
        confirmed = self._confirmed_by_slot.get(key)
        if confirmed is not None:
            confirmed.discard(reservation.id)
            if not confirmed:
                del self._confirmed_by_slot[key]

    # Maintenance

    async def health_check(self) -> HealthCheckResult:
        async with self._lock:
            return HealthCheckResult(
                healthy=True,
                backend_type=self.backend_type,
                namespace=self.namespace,
                metadata={
                    "users_count": len(self._users),
                    "reservations_count": len(self._reservations),
                    "confirmed_count": len(self._active_index),
                    "settings_exists": self._settings is not None,
                },
            )

    async def clear(self) -> None:
        async with self._lock:
            self._users.clear()
            self._user_ids_by_email.clear()
            self._settings = None
            self._reservations.clear()
            self._active_index.clear()
            self._confirmed_by_slot.clear()
            logger.debug("Cleared memory store")

    async def cleanup(self) -> None:
        """Clean up store resources."""
        await self.clear()
        await super().cleanup()
        logger.debug("MemoryStore cleanup completed")


__all__ = ["MemoryStore"]

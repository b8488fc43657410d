# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Desk Booking Engine - half-day desk reservations for a coworking space.

This library decides whether a desk booking may be created or cancelled,
reports remaining capacity per day and slot, and sends day-ahead reminders.

Key Features:
    - Admission with duplicate and capacity checks closed by the store
    - Cancellation cutoff at the slot's start instant
    - Load-or-initialize coworking settings with admin updates
    - Fire-and-forget notifications and an idempotent reminder scan
    - Multiple store options (memory, Redis)

Quick Start:
    >>> from datetime import date
    >>> from desk_booking import MemoryStore, ReservationAdmissionEngine, Slot
    >>>
    >>> store = MemoryStore()
    >>> user = await store.create_user("ada@example.com", "Ada", "Lovelace")
    >>> engine = ReservationAdmissionEngine(store)
    >>> result = await engine.create_reservation(user.id, date(2024, 6, 10), Slot.MORNING)
    >>> result.success
    True

Main Exports:
    - ReservationAdmissionEngine: create and cancel reservations
    - SettingsProvider, AvailabilityCalculator, ReservationQueries
    - ReminderScanner: day-ahead reminder batch job
    - MemoryStore, RedisStore: Stores
    - BookingConfig: Configuration options

Note: RedisStore requires the 'redis' extra. Install with:
    pip install desk-booking-engine[redis]

Version: 1.0.0
"""

__version__ = "1.0.0"

from typing import TYPE_CHECKING

from .backends import (
    BaseStore,
    HealthCheckResult,
    MemoryStore,
)
from .clock import FixedClock, SystemClock
from .config import BookingConfig
from .engine import (
    AvailabilityCalculator,
    BookingStats,
    ReservationAdmissionEngine,
    ReservationQueries,
    SettingsProvider,
)
from .exceptions import (
    CapacityExceededError,
    ConfigurationError,
    DeskBookingError,
    NotificationError,
    SettingsValidationError,
    StoreConnectionError,
    StoreError,
    StoreOperationError,
    UniqueConstraintError,
)
from .notifications import (
    LoggingNotifier,
    NotificationDispatcher,
)
from .protocols import ClockProtocol, NotifierProtocol
from .reminders import ReminderScanner
from .types import (
    Availability,
    CoworkingSettings,
    Failure,
    NotificationKind,
    Reservation,
    ReservationDetails,
    ReservationError,
    ReservationQuery,
    ReservationStatus,
    Result,
    Role,
    Slot,
    Success,
    User,
)

# Lazy import for optional redis store
if TYPE_CHECKING:
    from .backends import RedisStore

__all__ = [
    "Availability",
    "AvailabilityCalculator",
    "BaseStore",
    "BookingConfig",
    "BookingStats",
    "CapacityExceededError",
    "ClockProtocol",
    "ConfigurationError",
    "CoworkingSettings",
    "DeskBookingError",
    "Failure",
    "FixedClock",
    "HealthCheckResult",
    "LoggingNotifier",
    "MemoryStore",
    "NotificationDispatcher",
    "NotificationError",
    "NotificationKind",
    "NotifierProtocol",
    "RedisStore",  # Lazy loaded - requires redis extra
    "ReminderScanner",
    "Reservation",
    "ReservationAdmissionEngine",
    "ReservationDetails",
    "ReservationError",
    "ReservationQueries",
    "ReservationQuery",
    "ReservationStatus",
    "Result",
    "Role",
    "SettingsProvider",
    "SettingsValidationError",
    "Slot",
    "StoreConnectionError",
    "StoreError",
    "StoreOperationError",
    "Success",
    "SystemClock",
    "UniqueConstraintError",
    "User",
]


def __getattr__(name: str) -> type:
    """Lazy import for optional redis store."""
    if name == "RedisStore":
        from .backends import RedisStore

        return RedisStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

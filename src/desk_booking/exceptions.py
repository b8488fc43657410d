# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the desk booking engine.

This module defines the fault hierarchy used throughout the library. All
exceptions inherit from DeskBookingError, making it easy to catch every
library-originated fault with a single except clause.

Expected booking outcomes (a full slot, a duplicate booking, a late
cancellation, a missing or foreign reservation) are NOT exceptions. They are
returned as ``Failure`` values carrying a ``ReservationError``. The classes
below describe faults: broken configuration, unreachable storage, and the
storage-level conflicts the admission engine translates into domain results.
"""


class DeskBookingError(Exception):
    """Base exception for all desk booking errors.

    Example:
        try:
            result = await engine.create_reservation(user_id, day, Slot.MORNING)
        except DeskBookingError as e:
            logger.error(f"Booking fault: {e}")
    """

    pass


class ConfigurationError(DeskBookingError):
    """Raised when configuration is invalid.

    Common causes include:
    - An unknown time zone name
    - Non-positive desk capacity
    - Slot hours outside 0-23 or with start >= end
    """

    pass


class SettingsValidationError(ConfigurationError):
    """Raised when an admin settings update would produce invalid settings.

    Attributes:
        field: The offending field name, when a single field is at fault.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class StoreError(DeskBookingError):
    """Base class for storage faults."""

    pass


class StoreConnectionError(StoreError):
    """Raised when the store cannot be reached.

    Example:
        try:
            store = RedisStore(redis_url)
            await store.start()
        except StoreConnectionError:
            logger.warning("Redis unavailable, falling back to memory store")
            store = MemoryStore()
    """

    pass


class StoreOperationError(StoreError):
    """Raised when a store operation fails after the connection is established.

    This covers serialization problems, corrupt records and backend-specific
    command failures.
    """

    pass


class UniqueConstraintError(StoreError):
    """Raised when an insert would create a second active booking.

    The store enforces at most one CONFIRMED reservation per
    ``(user_id, date, slot)``. Two concurrent admissions for the same user can
    both pass the pre-check; the loser of the insert race sees this error.

    Attributes:
        user_id: Owner of the conflicting booking.
        key: Human readable ``date/slot`` key of the conflict.
    """

    def __init__(self, user_id: str, key: str):
        super().__init__(
            f"Active reservation already exists for user {user_id} on {key}"
        )
        self.user_id = user_id
        self.key = key


class CapacityExceededError(StoreError):
    """Raised when an atomic insert finds no desk left for the slot.

    Only raised when the caller asks the store to enforce capacity as part of
    the insert.

    Attributes:
        key: Human readable ``date/slot`` key that is full.
        capacity: The capacity the insert was checked against.
    """

    def __init__(self, key: str, capacity: int):
        super().__init__(f"No desk left for {key} (capacity {capacity})")
        self.key = key
        self.capacity = capacity


class NotificationError(DeskBookingError):
    """Raised by notifiers when a message cannot be delivered.

    Attributes:
        reservation_id: The reservation the message was about, if known.
    """

    def __init__(self, message: str, reservation_id: str | None = None):
        super().__init__(message)
        self.reservation_id = reservation_id

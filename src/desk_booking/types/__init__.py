# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions for users, reservations, settings and results."""

from .availability import Availability
from .notification import NotificationKind, ReservationDetails
from .reservation import (
    Reservation,
    ReservationQuery,
    ReservationStatus,
    Slot,
    sort_reservations,
)
from .result import Failure, ReservationError, Result, Success
from .settings import CoworkingSettings
from .user import Role, User

__all__ = [
    "Availability",
    "CoworkingSettings",
    "Failure",
    "NotificationKind",
    "Reservation",
    "ReservationDetails",
    "ReservationError",
    "ReservationQuery",
    "ReservationStatus",
    "Result",
    "Role",
    "Slot",
    "Success",
    "User",
    "sort_reservations",
]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Booking decisions and views.

- SettingsProvider: load-or-initialize settings, admin updates
- AvailabilityCalculator: remaining desks per date and slot
- ReservationAdmissionEngine: create and cancel reservations
- ReservationQueries: listings and dashboard statistics
"""

from .admission import ReservationAdmissionEngine
from .availability import AvailabilityCalculator
from .queries import BookingStats, ReservationQueries
from .settings import SettingsProvider

__all__ = [
    "AvailabilityCalculator",
    "BookingStats",
    "ReservationAdmissionEngine",
    "ReservationQueries",
    "SettingsProvider",
]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Notification payload types."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from .reservation import Reservation, Slot
from .settings import CoworkingSettings


class NotificationKind(str, Enum):
    """Why a user is being notified."""

    CONFIRMATION = "confirmation"
    CANCELLATION = "cancellation"
    REMINDER = "reminder"


@dataclass(frozen=True)
class ReservationDetails:
    """
    What a notifier needs to describe a reservation.

    Attributes:
        reservation_id: Identifier quoted back to the user
        date: Calendar day of the booking
        slot: MORNING or AFTERNOON
        time_range: ``HH:00-HH:00`` window taken from the current settings
    """

    reservation_id: str
    date: date
    slot: Slot
    time_range: str

    @classmethod
    def from_reservation(
        cls, reservation: Reservation, settings: CoworkingSettings
    ) -> "ReservationDetails":
        return cls(
            reservation_id=reservation.id,
            date=reservation.date,
            slot=reservation.slot,
            time_range=settings.slot_time_range(reservation.slot),
        )


__all__ = ["NotificationKind", "ReservationDetails"]

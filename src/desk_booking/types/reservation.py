# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation types.

A reservation books one desk for one half-day slot on one calendar day. The
``date`` carries no time of day; the slot hours from the coworking settings
give it one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class Slot(str, Enum):
    """Half-day booking window."""

    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"

    @property
    def order(self) -> int:
        """Position of the slot within a day (MORNING first)."""
        return 0 if self is Slot.MORNING else 1


class ReservationStatus(str, Enum):
    """Reservation lifecycle state.

    CONFIRMED -> CANCELLED is the only transition; CANCELLED is terminal.
    """

    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Reservation:
    """
    A desk booking for one user, one day and one slot.

    Attributes:
        id: Unique reservation identifier
        user_id: Owner of the booking
        date: Calendar day of the booking (no time of day)
        slot: MORNING or AFTERNOON
        status: CONFIRMED while active, CANCELLED once soft-deleted
        created_at: UTC creation timestamp
        updated_at: UTC timestamp of the last mutation
        reminder_sent_at: UTC timestamp of the reminder, set at most once
    """

    id: str
    user_id: str
    date: date
    slot: Slot
    status: ReservationStatus = ReservationStatus.CONFIRMED
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    reminder_sent_at: datetime | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.status is ReservationStatus.CONFIRMED

    @property
    def slot_key(self) -> str:
        """``YYYY-MM-DD/SLOT`` key identifying the capacity pool."""
        return f"{self.date.isoformat()}/{self.slot.value}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat string dict for backend storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "slot": self.slot.value,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "reminder_sent_at": self.reminder_sent_at.isoformat()
            if self.reminder_sent_at
            else "",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reservation":
        """Create a Reservation from its stored dict form."""
        reminder = data.get("reminder_sent_at")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            date=date.fromisoformat(data["date"]),
            slot=Slot(data["slot"]),
            status=ReservationStatus(data.get("status", "CONFIRMED")),
            created_at=datetime.fromisoformat(data["created_at"])
            if data.get("created_at")
            else _utcnow(),
            updated_at=datetime.fromisoformat(data["updated_at"])
            if data.get("updated_at")
            else _utcnow(),
            reminder_sent_at=datetime.fromisoformat(reminder) if reminder else None,
        )


@dataclass
class ReservationQuery:
    """
    Filter for listing reservations.

    Every attribute left as None matches everything.

    Attributes:
        user_id: Only reservations owned by this user
        date: Only reservations on this calendar day
        slot: Only reservations for this slot
        status: Only reservations in this status
        reminder_pending: When True, only reservations with no reminder stamp
    """

    user_id: str | None = None
    date: date | None = None
    slot: Slot | None = None
    status: ReservationStatus | None = None
    reminder_pending: bool | None = None

    def matches(self, reservation: Reservation) -> bool:
        if self.user_id is not None and reservation.user_id != self.user_id:
            return False
        if self.date is not None and reservation.date != self.date:
            return False
        if self.slot is not None and reservation.slot is not self.slot:
            return False
        if self.status is not None and reservation.status is not self.status:
            return False
        if self.reminder_pending is not None:
            pending = reservation.reminder_sent_at is None
            if pending is not self.reminder_pending:
                return False
        return True


def sort_reservations(reservations: list[Reservation]) -> list[Reservation]:
    """Order reservations by date, then slot (MORNING before AFTERNOON)."""
    return sorted(reservations, key=lambda r: (r.date, r.slot.order, r.created_at))


__all__ = [
    "Reservation",
    "ReservationQuery",
    "ReservationStatus",
    "Slot",
    "sort_reservations",
]

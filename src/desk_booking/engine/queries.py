# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Read-only views over reservations for members and admins."""

import asyncio
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from ..backends.base import BaseStore
from ..clock import normalize_date
from ..config import BookingConfig
from ..types.reservation import Reservation, ReservationQuery, ReservationStatus, Slot
from ..types.user import User
from .settings import SettingsProvider


@dataclass(frozen=True)
class BookingStats:
    total_users: int
    total_reservations: int
    confirmed_reservations: int
    cancelled_reservations: int
    total_desks: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_users": self.total_users,
            "total_reservations": self.total_reservations,
            "confirmed_reservations": self.confirmed_reservations,
            "cancelled_reservations": self.cancelled_reservations,
            "total_desks": self.total_desks,
        }


class ReservationQueries:
    """
    Listing and statistics.

    Only CONFIRMED reservations are listed; cancelled ones are kept for the
    record but hidden from members and the admin planning view.
    """

    def __init__(
        self,
        store: BaseStore,
        settings_provider: SettingsProvider,
        config: BookingConfig | None = None,
    ):
        self.store = store
        self.settings_provider = settings_provider
        self.config = config or BookingConfig()

    async def list_user_reservations(self, user_id: str) -> list[Reservation]:
        """A member's active bookings ordered by date, MORNING first."""
        return await self.store.list_reservations(
            ReservationQuery(user_id=user_id, status=ReservationStatus.CONFIRMED)
        )

    async def list_reservations(
        self,
        day: date | datetime | None = None,
        slot: Slot | str | None = None,
    ) -> list[Reservation]:
        """Active bookings, optionally for one day and/or slot."""
        return await self.store.list_reservations(
            ReservationQuery(
                date=normalize_date(day, self.config.tz) if day is not None else None,
                slot=Slot(slot) if slot is not None else None,
                status=ReservationStatus.CONFIRMED,
            )
        )

    async def list_reservations_with_users(
        self,
        day: date | datetime | None = None,
        slot: Slot | str | None = None,
    ) -> list[tuple[Reservation, User | None]]:
        """Admin view: active bookings paired with their owner."""
        reservations = await self.list_reservations(day, slot)
        users: dict[str, User | None] = {}
        for user_id in {r.user_id for r in reservations}:
            users[user_id] = await self.store.get_user(user_id)
        return [(r, users[r.user_id]) for r in reservations]

    async def get_stats(self) -> BookingStats:
        """
        Counts for the admin dashboard.

        ``total_desks`` is 0 when the settings row has never been created;
        reading stats does not create it.
        """
        total_users, total, confirmed, settings = await asyncio.gather(
            self.store.count_users(),
            self.store.count_reservations(),
            self.store.count_reservations(
                ReservationQuery(status=ReservationStatus.CONFIRMED)
            ),
            self.settings_provider.peek_settings(),
        )
        return BookingStats(
            total_users=total_users,
            total_reservations=total,
            confirmed_reservations=confirmed,
            cancelled_reservations=total - confirmed,
            total_desks=settings.total_desks if settings else 0,
        )


__all__ = ["BookingStats", "ReservationQueries"]

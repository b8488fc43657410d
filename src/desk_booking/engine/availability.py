# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Remaining-capacity computation for a day and slot.

The result is advisory. No desk is held between a check and a later booking;
the admission engine checks again when it inserts.
"""

import logging
from datetime import date, datetime

from ..backends.base import BaseStore
from ..clock import normalize_date
from ..config import BookingConfig
from ..observability.collector import (
    UnifiedMetricsCollector,
    resolve_metrics_collector,
)
from ..observability.constants import AVAILABILITY_CHECKS_TOTAL
from ..types.availability import Availability
from ..types.reservation import ReservationQuery, ReservationStatus, Slot
from ..types.settings import CoworkingSettings
from .settings import SettingsProvider

logger = logging.getLogger(__name__)


class AvailabilityCalculator:
    """Counts confirmed bookings for a ``(date, slot)`` against total capacity."""

    def __init__(
        self,
        store: BaseStore,
        settings_provider: SettingsProvider,
        config: BookingConfig | None = None,
        metrics_collector: UnifiedMetricsCollector | None = None,
    ):
        self.store = store
        self.settings_provider = settings_provider
        self.config = config or BookingConfig()
        self.metrics_collector = resolve_metrics_collector(
            self.config.metrics_enabled, metrics_collector
        )

    async def confirmed_count(self, day: date, slot: Slot) -> int:
        """Number of CONFIRMED reservations for an already normalized day."""
        return await self.store.count_reservations(
            ReservationQuery(date=day, slot=slot, status=ReservationStatus.CONFIRMED)
        )

    async def check_availability(
        self,
        day: date | datetime,
        slot: Slot,
        settings: CoworkingSettings | None = None,
    ) -> Availability:
        """
        Compute ``available = max(0, total_desks - confirmed)`` for a slot.

        Args:
            day: Booking day; any time of day is stripped
            slot: Slot to check
            settings: Settings to use instead of loading them again

        Returns:
            Availability with the remaining and total desk counts
        """
        normalized = normalize_date(day, self.config.tz)
        if settings is None:
            settings = await self.settings_provider.get_settings()

        confirmed = await self.confirmed_count(normalized, slot)
        availability = Availability(
            available=max(0, settings.total_desks - confirmed),
            total=settings.total_desks,
        )

        logger.debug(
            f"Availability for {normalized.isoformat()}/{slot.value}: "
            f"{availability.available}/{availability.total}"
        )
        if self.metrics_collector:
            self.metrics_collector.inc_counter(
                AVAILABILITY_CHECKS_TOTAL, labels={"slot": slot.value}
            )
        return availability


__all__ = ["AvailabilityCalculator"]

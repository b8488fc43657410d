# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation admission and cancellation.

Admission runs three steps against the store: duplicate pre-check, capacity
pre-check, insert. The pre-checks are not atomic with the insert, so two
requests can both pass them. The store closes that gap:

- its unique index on active ``(user, date, slot)`` bookings turns a lost
  duplicate race into ``UniqueConstraintError``, reported as DUPLICATE;
- when ``enforce_capacity_atomically`` is set, the insert re-counts confirmed
  bookings for the slot and raises ``CapacityExceededError``, reported as
  FULL. With the flag off the capacity check is best-effort and a burst of
  requests for the last desk can overbook the slot.

The five domain outcomes are returned as ``Failure`` values. Any other error
is a fault: it is logged and propagates to the caller.
"""

import logging
from datetime import date, datetime

from ..backends.base import BaseStore, slot_key
from ..clock import SystemClock, normalize_date, slot_start_instant
from ..config import BookingConfig
from ..exceptions import CapacityExceededError, UniqueConstraintError
from ..notifications.dispatcher import NotificationDispatcher
from ..observability.collector import (
    UnifiedMetricsCollector,
    resolve_metrics_collector,
)
from ..observability.constants import (
    CANCELLATIONS_TOTAL,
    RESERVATIONS_CREATED_TOTAL,
    RESERVATIONS_REJECTED_TOTAL,
)
from ..protocols.clock import ClockProtocol
from ..types.availability import Availability
from ..types.notification import NotificationKind
from ..types.reservation import (
    Reservation,
    ReservationQuery,
    ReservationStatus,
    Slot,
)
from ..types.result import Failure, ReservationError, Result, Success
from .availability import AvailabilityCalculator
from .settings import SettingsProvider

logger = logging.getLogger(__name__)


class ReservationAdmissionEngine:
    """
    Decides whether a booking may be created or cancelled.

    Example:
        >>> engine = ReservationAdmissionEngine(MemoryStore())
        >>> result = await engine.create_reservation(user.id, date(2024, 6, 10), Slot.MORNING)
        >>> result.success
        True
    """

    def __init__(
        self,
        store: BaseStore,
        config: BookingConfig | None = None,
        clock: ClockProtocol | None = None,
        settings_provider: SettingsProvider | None = None,
        availability: AvailabilityCalculator | None = None,
        dispatcher: NotificationDispatcher | None = None,
        metrics_collector: UnifiedMetricsCollector | None = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Backing store for users, settings and reservations
            config: Engine configuration (defaults to ``BookingConfig()``)
            clock: Time source for cancellation cutoffs
            settings_provider: Settings access; built from ``store`` if omitted
            availability: Capacity calculator; built from ``store`` if omitted
            dispatcher: Notification dispatcher; no notifications if omitted
            metrics_collector: Collector for admission metrics
        """
        self.store = store
        self.config = config or BookingConfig()
        self.clock = clock or SystemClock()
        self.metrics_collector = resolve_metrics_collector(
            self.config.metrics_enabled, metrics_collector
        )
        self.settings_provider = settings_provider or SettingsProvider(
            store, self.config, self.clock, self.metrics_collector
        )
        self.availability = availability or AvailabilityCalculator(
            store, self.settings_provider, self.config, self.metrics_collector
        )
        self.dispatcher = dispatcher

    async def check_availability(
        self, day: date | datetime, slot: Slot | str
    ) -> Availability:
        """Advisory remaining capacity for a day and slot."""
        return await self.availability.check_availability(day, Slot(slot))

    # ==========================================================================
    # Admission
    # ==========================================================================

    async def create_reservation(
        self, user_id: str, day: date | datetime, slot: Slot | str
    ) -> Result[Reservation]:
        """
        Book a desk for ``user_id`` on ``day`` in ``slot``.

        Returns:
            Success with the new reservation, or Failure with DUPLICATE or FULL
        """
        slot = Slot(slot)
        normalized = normalize_date(day, self.config.tz)
        try:
            return await self._admit(user_id, normalized, slot)
        except Exception:
            logger.error(
                f"Reservation for user {user_id} on "
                f"{slot_key(normalized, slot)} failed",
                exc_info=True,
            )
            raise

    async def _admit(self, user_id: str, day: date, slot: Slot) -> Result[Reservation]:
        existing = await self.store.find_reservation(
            ReservationQuery(
                user_id=user_id,
                date=day,
                slot=slot,
                status=ReservationStatus.CONFIRMED,
            )
        )
        if existing is not None:
            return self._reject(user_id, day, slot, ReservationError.DUPLICATE)

        settings = await self.settings_provider.get_settings()
        availability = await self.availability.check_availability(
            day, slot, settings=settings
        )
        if availability.available <= 0:
            return self._reject(user_id, day, slot, ReservationError.FULL)

        capacity = (
            settings.total_desks if self.config.enforce_capacity_atomically else None
        )
        try:
            reservation = await self.store.create_reservation(
                user_id, day, slot, capacity=capacity
            )
        except UniqueConstraintError:
            logger.info(
                f"Concurrent booking by user {user_id} won the insert for "
                f"{slot_key(day, slot)}"
            )
            return self._reject(user_id, day, slot, ReservationError.DUPLICATE)
        except CapacityExceededError:
            logger.info(
                f"Last desk for {slot_key(day, slot)} taken by a concurrent booking"
            )
            return self._reject(user_id, day, slot, ReservationError.FULL)

        logger.info(
            f"Reservation {reservation.id} confirmed for user {user_id} on "
            f"{reservation.slot_key}"
        )
        if self.metrics_collector:
            self.metrics_collector.inc_counter(
                RESERVATIONS_CREATED_TOTAL, labels={"slot": slot.value}
            )
        if self.dispatcher is not None:
            self.dispatcher.dispatch(reservation, settings, NotificationKind.CONFIRMATION)
        return Success(reservation)

    def _reject(
        self, user_id: str, day: date, slot: Slot, error: ReservationError
    ) -> Failure:
        logger.info(
            f"Reservation for user {user_id} on {slot_key(day, slot)} "
            f"rejected: {error.value}"
        )
        if self.metrics_collector:
            self.metrics_collector.inc_counter(
                RESERVATIONS_REJECTED_TOTAL,
                labels={"slot": slot.value, "outcome": error.value.lower()},
            )
        return Failure(error)

    # ==========================================================================
    # Cancellation
    # ==========================================================================

    async def cancel_reservation(
        self, reservation_id: str, user_id: str
    ) -> Result[Reservation]:
        """
        Cancel a reservation on behalf of its owner.

        Cancellation is allowed strictly before the slot's start instant on the
        reservation's day, in the configured time zone. An already cancelled
        reservation is reported as NOT_FOUND.

        Returns:
            Success with the cancelled reservation, or Failure with NOT_FOUND,
            UNAUTHORIZED or TOO_LATE
        """
        try:
            result = await self._cancel(reservation_id, user_id)
        except Exception:
            logger.error(
                f"Cancellation of reservation {reservation_id} failed", exc_info=True
            )
            raise

        outcome = (
            "success" if isinstance(result, Success) else result.error.value.lower()
        )
        if self.metrics_collector:
            self.metrics_collector.inc_counter(
                CANCELLATIONS_TOTAL, labels={"outcome": outcome}
            )
        return result

    async def _cancel(self, reservation_id: str, user_id: str) -> Result[Reservation]:
        reservation = await self.store.get_reservation(reservation_id)
        if reservation is None:
            return Failure(ReservationError.NOT_FOUND)

        if reservation.user_id != user_id:
            logger.warning(
                f"User {user_id} tried to cancel reservation {reservation_id} "
                f"owned by {reservation.user_id}"
            )
            return Failure(ReservationError.UNAUTHORIZED)

        if reservation.status is ReservationStatus.CANCELLED:
            return Failure(ReservationError.NOT_FOUND)

        settings = await self.settings_provider.get_settings()
        cutoff = slot_start_instant(
            reservation.date,
            settings.slot_start_hour(reservation.slot),
            self.config.tz,
        )
        if self.clock.now() >= cutoff:
            logger.info(
                f"Cancellation of reservation {reservation_id} refused: "
                f"slot started at {cutoff.isoformat()}"
            )
            return Failure(ReservationError.TOO_LATE)

        cancelled = await self.store.update_reservation(
            reservation_id, status=ReservationStatus.CANCELLED
        )
        if cancelled is None:
            # Deleted between the read and the update
            return Failure(ReservationError.NOT_FOUND)

        logger.info(f"Reservation {reservation_id} cancelled by user {user_id}")
        if self.dispatcher is not None:
            self.dispatcher.dispatch(cancelled, settings, NotificationKind.CANCELLATION)
        return Success(cancelled)


__all__ = ["ReservationAdmissionEngine"]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reminder scanner.

Sends one reminder per confirmed reservation on the day ``reminder_lead_time``
ahead. The ``reminder_sent_at`` stamp is written only after the notifier
returns, so rerunning a scan skips everything already reminded. A crash
between send and stamp can produce one duplicate reminder for that
reservation.
"""

import asyncio
import contextlib
import logging
from datetime import date

from ..backends.base import BaseStore
from ..clock import SystemClock
from ..config import BookingConfig
from ..engine.settings import SettingsProvider
from ..exceptions import NotificationError
from ..observability.collector import (
    UnifiedMetricsCollector,
    resolve_metrics_collector,
)
from ..observability.constants import (
    REMINDER_SCANS_TOTAL,
    REMINDERS_FAILED_TOTAL,
    REMINDERS_SENT_TOTAL,
)
from ..protocols.clock import ClockProtocol
from ..protocols.notifier import NotifierProtocol
from ..types.notification import NotificationKind, ReservationDetails
from ..types.reservation import Reservation, ReservationQuery, ReservationStatus
from ..types.settings import CoworkingSettings

logger = logging.getLogger(__name__)


class ReminderScanner:
    """
    Batch job sending day-ahead reminders.

    ``send_reservation_reminders()`` is the entry point for an external
    scheduler. Deployments without one can call ``start()`` to run it every
    ``reminder_interval_seconds`` in the background.
    """

    def __init__(
        self,
        store: BaseStore,
        notifier: NotifierProtocol,
        config: BookingConfig | None = None,
        clock: ClockProtocol | None = None,
        settings_provider: SettingsProvider | None = None,
        metrics_collector: UnifiedMetricsCollector | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.config = config or BookingConfig()
        self.clock = clock or SystemClock()
        self.metrics_collector = resolve_metrics_collector(
            self.config.metrics_enabled, metrics_collector
        )
        self.settings_provider = settings_provider or SettingsProvider(
            store, self.config, self.clock, self.metrics_collector
        )

        self._running = False
        self._scan_task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def target_date(self) -> date:
        """Calendar day, in the configured zone, ``reminder_lead_time`` from now."""
        return (self.clock.now() + self.config.reminder_lead_time).astimezone(
            self.config.tz
        ).date()

    async def send_reservation_reminders(self) -> int:
        """
        Remind every confirmed, not yet reminded reservation on the target day.

        Returns:
            Number of reminders sent and stamped

        Raises:
            StoreError: If the eligible reservations cannot be listed
        """
        target = self.target_date()
        try:
            due = await self.store.list_reservations(
                ReservationQuery(
                    date=target,
                    status=ReservationStatus.CONFIRMED,
                    reminder_pending=True,
                )
            )
            settings = await self.settings_provider.get_settings()
        except Exception:
            logger.error(f"Reminder scan for {target} failed", exc_info=True)
            raise

        if self.metrics_collector:
            self.metrics_collector.inc_counter(REMINDER_SCANS_TOTAL)

        sent = 0
        for reservation in due:
            if await self._remind(reservation, settings):
                sent += 1

        logger.info(f"Reminder scan for {target}: sent {sent} of {len(due)}")
        return sent

    async def _remind(
        self, reservation: Reservation, settings: CoworkingSettings
    ) -> bool:
        try:
            user = await self.store.get_user(reservation.user_id)
            if user is None:
                raise NotificationError(
                    f"User {reservation.user_id} not found",
                    reservation_id=reservation.id,
                )
            details = ReservationDetails.from_reservation(reservation, settings)
            await self.notifier.notify(user, details, NotificationKind.REMINDER)
            stamped = await self.store.update_reservation(
                reservation.id, reminder_sent_at=self.clock.now()
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Reminder for reservation {reservation.id} failed: {e}",
                exc_info=True,
            )
            if self.metrics_collector:
                self.metrics_collector.inc_counter(REMINDERS_FAILED_TOTAL)
            return False

        if stamped is None:
            logger.warning(
                f"Reservation {reservation.id} disappeared before its reminder "
                f"could be stamped"
            )
        if self.metrics_collector:
            self.metrics_collector.inc_counter(REMINDERS_SENT_TOTAL)
        return True

    # ==========================================================================
    # Periodic runner
    # ==========================================================================

    async def start(self) -> None:
        """Run a scan now and then every ``reminder_interval_seconds``."""
        if self._scan_task is not None and not self._scan_task.done():
            return
        self._running = True
        self._scan_task = asyncio.create_task(
            self._scan_loop(), name="reminder_scanner"
        )
        logger.info(
            f"Reminder scanner started "
            f"(interval={self.config.reminder_interval_seconds}s)"
        )

    async def stop(self) -> None:
        """Cancel the background scan loop."""
        self._running = False
        if self._scan_task and not self._scan_task.done():
            self._scan_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._scan_task
        self._scan_task = None
        logger.info("Reminder scanner stopped")

    async def _scan_loop(self) -> None:
        while self._running:
            try:
                await self.send_reservation_reminders()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Reminder scan error: {e}")
            try:
                await asyncio.sleep(self.config.reminder_interval_seconds)
            except asyncio.CancelledError:
                break


__all__ = ["ReminderScanner"]

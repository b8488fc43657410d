# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Fire-and-forget delivery of booking notifications.

A notification is dispatched only after the state change it describes has
been committed. Delivery runs in its own task; a failure is logged and counted
and never reaches the caller of the booking operation.
"""

import asyncio
import logging

from ..backends.base import BaseStore
from ..config import BookingConfig
from ..exceptions import NotificationError
from ..observability.collector import (
    UnifiedMetricsCollector,
    resolve_metrics_collector,
)
from ..observability.constants import (
    NOTIFICATIONS_DISPATCHED_TOTAL,
    NOTIFICATIONS_FAILED_TOTAL,
    NOTIFICATIONS_PENDING,
)
from ..protocols.notifier import NotifierProtocol
from ..types.notification import NotificationKind, ReservationDetails
from ..types.reservation import Reservation
from ..types.settings import CoworkingSettings

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Runs notifier calls as tracked background tasks.

    Tasks are kept in a set until they finish so they are not garbage
    collected mid-flight; ``drain()`` waits for all of them, which tests and
    graceful shutdown rely on.
    """

    def __init__(
        self,
        store: BaseStore,
        notifier: NotifierProtocol,
        config: BookingConfig | None = None,
        metrics_collector: UnifiedMetricsCollector | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.config = config or BookingConfig()
        self.enabled = self.config.notifications_enabled
        self.metrics_collector = resolve_metrics_collector(
            self.config.metrics_enabled, metrics_collector
        )
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(
        self,
        reservation: Reservation,
        settings: CoworkingSettings,
        kind: NotificationKind,
    ) -> asyncio.Task[bool] | None:
        """
        Schedule a notification about ``reservation``.

        Returns:
            The delivery task, or None when notifications are disabled
        """
        if not self.enabled:
            return None

        details = ReservationDetails.from_reservation(reservation, settings)
        task = asyncio.create_task(
            self.deliver(reservation.user_id, details, kind),
            name=f"notify-{kind.value}-{reservation.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        self._update_pending_gauge()
        return task

    def _on_done(self, task: asyncio.Task[bool]) -> None:
        self._tasks.discard(task)
        self._update_pending_gauge()

    def _update_pending_gauge(self) -> None:
        if self.metrics_collector:
            self.metrics_collector.set_gauge(NOTIFICATIONS_PENDING, len(self._tasks))

    async def deliver(
        self, user_id: str, details: ReservationDetails, kind: NotificationKind
    ) -> bool:
        """
        Look up the user and call the notifier.

        Returns:
            True if the notifier accepted the message, False on any failure
        """
        try:
            user = await self.store.get_user(user_id)
            if user is None:
                raise NotificationError(
                    f"User {user_id} not found", reservation_id=details.reservation_id
                )
            await self.notifier.notify(user, details, kind)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Failed to send {kind.value} notification for reservation "
                f"{details.reservation_id}: {e}",
                exc_info=True,
            )
            if self.metrics_collector:
                self.metrics_collector.inc_counter(
                    NOTIFICATIONS_FAILED_TOTAL, labels={"kind": kind.value}
                )
            return False

        logger.debug(
            f"Sent {kind.value} notification for reservation {details.reservation_id}"
        )
        if self.metrics_collector:
            self.metrics_collector.inc_counter(
                NOTIFICATIONS_DISPATCHED_TOTAL, labels={"kind": kind.value}
            )
        return True

    async def drain(self, timeout: float | None = None) -> None:
        """
        Wait for every in-flight notification.

        Raises:
            asyncio.TimeoutError: If ``timeout`` elapses first
        """
        if not self._tasks:
            return
        pending = list(self._tasks)
        await asyncio.wait_for(
            asyncio.gather(*pending, return_exceptions=True), timeout=timeout
        )


__all__ = ["NotificationDispatcher"]

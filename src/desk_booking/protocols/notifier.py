# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for notification channels."""

from typing import Protocol, runtime_checkable

from ..types.notification import NotificationKind, ReservationDetails
from ..types.user import User


@runtime_checkable
class NotifierProtocol(Protocol):
    """
    Delivery channel for booking notifications (email, chat, ...).

    Implementations raise on delivery failure. Callers decide whether the
    failure matters: the admission engine ignores it, the reminder scanner
    skips the stamp so the reminder is retried on the next run.
    """

    async def notify(
        self,
        user: User,
        details: ReservationDetails,
        kind: NotificationKind,
    ) -> None:
        """Deliver one notification about a reservation."""
        ...

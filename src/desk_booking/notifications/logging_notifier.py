# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Notifier that writes rendered messages to the log instead of sending them."""

import logging

from ..types.notification import NotificationKind, ReservationDetails
from ..types.user import User
from .messages import NotificationMessage, render_message

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """
    Development notifier.

    Logs every message at INFO and keeps the last ones in ``sent`` so tests
    and local runs can inspect what would have been delivered.
    """

    def __init__(self, level: int = logging.INFO, keep_last: int = 100):
        self.level = level
        self.keep_last = keep_last
        self.sent: list[tuple[str, NotificationKind, NotificationMessage]] = []

    async def notify(
        self,
        user: User,
        details: ReservationDetails,
        kind: NotificationKind,
    ) -> None:
        message = render_message(user, details, kind)
        logger.log(
            self.level,
            f"[{kind.value}] To: {user.email} | Subject: {message.subject}\n{message.text}",
        )
        self.sent.append((user.email, kind, message))
        if len(self.sent) > self.keep_last:
            del self.sent[: len(self.sent) - self.keep_last]


__all__ = ["LoggingNotifier"]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Booking notifications.

- NotificationDispatcher: fire-and-forget delivery through a notifier
- LoggingNotifier: development notifier that logs instead of sending
- render_message: subject and body for each notification kind
"""

from ..types.notification import NotificationKind, ReservationDetails
from .dispatcher import NotificationDispatcher
from .logging_notifier import LoggingNotifier
from .messages import NotificationMessage, format_day, render_message

__all__ = [
    "LoggingNotifier",
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationMessage",
    "ReservationDetails",
    "format_day",
    "render_message",
]

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Plain-text rendering of booking notifications."""

from dataclasses import dataclass
from datetime import date

from ..types.notification import NotificationKind, ReservationDetails
from ..types.user import User

_FOOTER = "---\nThis is an automated message. Please do not reply."


@dataclass(frozen=True)
class NotificationMessage:
    subject: str
    text: str


def format_day(day: date) -> str:
    """``Monday, June 10, 2024`` style date."""
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def _details_block(title: str, details: ReservationDetails) -> str:
    return (
        f"{title}:\n"
        f"- Date: {format_day(details.date)}\n"
        f"- Time Slot: {details.slot.value} ({details.time_range})\n"
        f"- Reservation ID: {details.reservation_id}"
    )


def render_message(
    user: User, details: ReservationDetails, kind: NotificationKind
) -> NotificationMessage:
    """Build the subject and body for one notification."""
    day = format_day(details.date)
    greeting = f"Hi {user.display_name},"

    if kind is NotificationKind.CONFIRMATION:
        subject = f"Desk Reservation Confirmed - {day}"
        body = [
            greeting,
            "Your desk reservation has been confirmed!",
            _details_block("Reservation Details", details),
            "You can cancel this reservation anytime before the slot starts.",
            "See you at the coworking space!",
        ]
    elif kind is NotificationKind.CANCELLATION:
        subject = f"Desk Reservation Cancelled - {day}"
        body = [
            greeting,
            "Your desk reservation has been cancelled.",
            _details_block("Cancelled Reservation", details),
            "You can make a new reservation anytime.",
        ]
    else:
        subject = f"Reminder: Desk Reservation Tomorrow - {day}"
        body = [
            greeting,
            "This is a friendly reminder about your desk reservation tomorrow!",
            _details_block("Reservation Details", details),
            "You can cancel this reservation anytime before the slot starts "
            "if your plans change.",
            "See you tomorrow at the coworking space!",
        ]

    return NotificationMessage(subject=subject, text="\n\n".join([*body, _FOOTER]))


__all__ = ["NotificationMessage", "format_day", "render_message"]

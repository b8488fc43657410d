# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Configuration for the desk booking engine.

One ``BookingConfig`` is built at startup and passed explicitly to every
component that needs it.
"""

import os
from dataclasses import dataclass, fields
from datetime import timedelta, tzinfo
from typing import Any

from .clock import resolve_timezone
from .types.settings import (
    DEFAULT_AFTERNOON_END_HOUR,
    DEFAULT_AFTERNOON_START_HOUR,
    DEFAULT_MORNING_END_HOUR,
    DEFAULT_MORNING_START_HOUR,
    DEFAULT_TOTAL_DESKS,
)

ENV_PREFIX = "DESK_BOOKING_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass
class BookingConfig:
    """
    Configuration for admission, cancellation and reminders.
    """

    # === Calendar ===

    timezone: str = "UTC"
    """IANA zone used to normalize booking dates and compute slot start instants."""

    # === Settings Defaults ===

    default_total_desks: int = DEFAULT_TOTAL_DESKS
    """Capacity written when the settings row is first created."""

    default_morning_start_hour: int = DEFAULT_MORNING_START_HOUR
    """Morning slot start hour for a fresh settings row."""

    default_morning_end_hour: int = DEFAULT_MORNING_END_HOUR
    """Morning slot end hour for a fresh settings row."""

    default_afternoon_start_hour: int = DEFAULT_AFTERNOON_START_HOUR
    """Afternoon slot start hour for a fresh settings row."""

    default_afternoon_end_hour: int = DEFAULT_AFTERNOON_END_HOUR
    """Afternoon slot end hour for a fresh settings row."""

    # === Admission ===

    enforce_capacity_atomically: bool = True
    """Re-check capacity inside the store insert.

    When False, capacity is only checked before the insert and concurrent
    requests for the last desk can overbook the slot.
    """

    # === Reminders ===

    reminder_lead_time_hours: int = 24
    """How far ahead of now the reminder scan looks for bookings."""

    reminder_interval_seconds: float = 3600.0
    """Interval between scans when the scanner runs its own loop."""

    # === Notifications and Metrics ===

    notifications_enabled: bool = True
    """Dispatch confirmation and cancellation notifications."""

    metrics_enabled: bool = True
    """Record metrics in the collector."""

    # === Storage ===

    store_namespace: str = "desk_booking"
    """Key namespace for shared stores."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        resolve_timezone(self.timezone)
        if self.default_total_desks < 1:
            raise ValueError("default_total_desks must be at least 1")
        for name in (
            "default_morning_start_hour",
            "default_morning_end_hour",
            "default_afternoon_start_hour",
            "default_afternoon_end_hour",
        ):
            if not 0 <= getattr(self, name) <= 23:
                raise ValueError(f"{name} must be between 0 and 23")
        if self.default_morning_start_hour >= self.default_morning_end_hour:
            raise ValueError("morning slot must start before it ends")
        if self.default_afternoon_start_hour >= self.default_afternoon_end_hour:
            raise ValueError("afternoon slot must start before it ends")
        if self.reminder_lead_time_hours < 1:
            raise ValueError("reminder_lead_time_hours must be at least 1")
        if self.reminder_interval_seconds <= 0:
            raise ValueError("reminder_interval_seconds must be positive")
        if not self.store_namespace:
            raise ValueError("store_namespace must not be empty")

    @property
    def tz(self) -> tzinfo:
        return resolve_timezone(self.timezone)

    @property
    def reminder_lead_time(self) -> timedelta:
        return timedelta(hours=self.reminder_lead_time_hours)

    def default_settings_values(self) -> dict[str, int]:
        """Field values for a freshly created settings row."""
        return {
            "total_desks": self.default_total_desks,
            "morning_start_hour": self.default_morning_start_hour,
            "morning_end_hour": self.default_morning_end_hour,
            "afternoon_start_hour": self.default_afternoon_start_hour,
            "afternoon_end_hour": self.default_afternoon_end_hour,
        }

    @classmethod
    def from_env(
        cls, prefix: str = ENV_PREFIX, environ: dict[str, str] | None = None
    ) -> "BookingConfig":
        """
        Build a config from environment variables.

        Each field maps to ``{prefix}{FIELD_NAME}``, e.g.
        ``DESK_BOOKING_TIMEZONE=Europe/Paris``. Unset variables keep the
        dataclass default.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            if f.type in (bool, "bool"):
                values[f.name] = raw.strip().lower() in _TRUE_VALUES
            elif f.type in (int, "int"):
                values[f.name] = int(raw)
            elif f.type in (float, "float"):
                values[f.name] = float(raw)
            else:
                values[f.name] = raw
        return cls(**values)


__all__ = ["ENV_PREFIX", "BookingConfig"]

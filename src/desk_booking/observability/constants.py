# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the ``desk_booking_`` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    Keep labels categorical:
    - `slot` - MORNING or AFTERNOON
    - `outcome` - Lowercase domain outcome (success, full, duplicate, ...)
    - `kind` - Notification kind (confirmation, cancellation, reminder)
    - `backend` / `operation` - Store type and method name

    NEVER use:
    - `user_id` - Unique per user (unbounded!)
    - `reservation_id` - Unique per booking (unbounded!)
    - `date` - One value per day (unbounded!)

Usage:
    >>> from desk_booking.observability.constants import RESERVATIONS_CREATED_TOTAL
    >>> print(RESERVATIONS_CREATED_TOTAL)
    'desk_booking_reservations_created_total'
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "desk_booking"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Admission Metrics (engine/admission.py)
# =============================================================================

RESERVATIONS_CREATED_TOTAL = f"{METRIC_PREFIX}_reservations_created_total"
"""Total reservations admitted."""

RESERVATIONS_REJECTED_TOTAL = f"{METRIC_PREFIX}_reservations_rejected_total"
"""Total booking requests rejected (full, duplicate)."""

CANCELLATIONS_TOTAL = f"{METRIC_PREFIX}_cancellations_total"
"""Total cancellation requests by outcome."""

AVAILABILITY_CHECKS_TOTAL = f"{METRIC_PREFIX}_availability_checks_total"
"""Total availability computations."""


# =============================================================================
# Settings Metrics (engine/settings.py)
# =============================================================================

SETTINGS_INITIALIZED_TOTAL = f"{METRIC_PREFIX}_settings_initialized_total"
"""Times the settings row was created with defaults."""

SETTINGS_UPDATES_TOTAL = f"{METRIC_PREFIX}_settings_updates_total"
"""Total admin settings updates."""


# =============================================================================
# Notification Metrics (notifications/dispatcher.py)
# =============================================================================

NOTIFICATIONS_DISPATCHED_TOTAL = f"{METRIC_PREFIX}_notifications_dispatched_total"
"""Total notifications delivered."""

NOTIFICATIONS_FAILED_TOTAL = f"{METRIC_PREFIX}_notifications_failed_total"
"""Total notifications whose delivery raised."""

NOTIFICATIONS_PENDING = f"{METRIC_PREFIX}_notifications_pending"
"""Notification tasks currently in flight."""


# =============================================================================
# Reminder Metrics (reminders/scanner.py)
# =============================================================================

REMINDER_SCANS_TOTAL = f"{METRIC_PREFIX}_reminder_scans_total"
"""Total reminder scans run."""

REMINDERS_SENT_TOTAL = f"{METRIC_PREFIX}_reminders_sent_total"
"""Total reminders sent and stamped."""

REMINDERS_FAILED_TOTAL = f"{METRIC_PREFIX}_reminders_failed_total"
"""Total reminders skipped after a per-reservation failure."""


# =============================================================================
# Store Metrics (backends/)
# =============================================================================

STORE_LATENCY_SECONDS = f"{METRIC_PREFIX}_store_latency_seconds"
"""Store operation latency."""

STORE_LUA_EXECUTIONS_TOTAL = f"{METRIC_PREFIX}_store_lua_executions_total"
"""Total Lua script executions against Redis."""


# =============================================================================
# Histogram Buckets
# =============================================================================

LATENCY_BUCKETS: list[float] = [
    0.0005,
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
]
"""Buckets for store latency (sub-millisecond to one second)."""


__all__ = [
    "AVAILABILITY_CHECKS_TOTAL",
    "CANCELLATIONS_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "NOTIFICATIONS_DISPATCHED_TOTAL",
    "NOTIFICATIONS_FAILED_TOTAL",
    "NOTIFICATIONS_PENDING",
    "REMINDERS_FAILED_TOTAL",
    "REMINDERS_SENT_TOTAL",
    "REMINDER_SCANS_TOTAL",
    "RESERVATIONS_CREATED_TOTAL",
    "RESERVATIONS_REJECTED_TOTAL",
    "SETTINGS_INITIALIZED_TOTAL",
    "SETTINGS_UPDATES_TOTAL",
    "STORE_LATENCY_SECONDS",
    "STORE_LUA_EXECUTIONS_TOTAL",
]

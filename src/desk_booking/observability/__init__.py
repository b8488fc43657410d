# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the desk booking engine.

Classes:
    UnifiedMetricsCollector: Metrics collector with dict snapshot and Prometheus.
    MetricDefinition: Schema of a predefined metric.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.

Constants:
    All metric name constants from the constants module.
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
    resolve_metrics_collector,
)
from .constants import (
    AVAILABILITY_CHECKS_TOTAL,
    CANCELLATIONS_TOTAL,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
    NOTIFICATIONS_DISPATCHED_TOTAL,
    NOTIFICATIONS_FAILED_TOTAL,
    NOTIFICATIONS_PENDING,
    REMINDER_SCANS_TOTAL,
    REMINDERS_FAILED_TOTAL,
    REMINDERS_SENT_TOTAL,
    RESERVATIONS_CREATED_TOTAL,
    RESERVATIONS_REJECTED_TOTAL,
    SETTINGS_INITIALIZED_TOTAL,
    SETTINGS_UPDATES_TOTAL,
    STORE_LATENCY_SECONDS,
    STORE_LUA_EXECUTIONS_TOTAL,
)

__all__ = [
    "AVAILABILITY_CHECKS_TOTAL",
    "CANCELLATIONS_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_DEFINITIONS",
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
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
    "resolve_metrics_collector",
]

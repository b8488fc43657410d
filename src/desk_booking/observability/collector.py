# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Unified metrics collector backed by both a dict snapshot and Prometheus.

Features:
    1. Thread-safe counter/gauge/histogram operations
    2. Prometheus metric registration on first use
    3. Dict snapshot of counters and gauges for JSON export
    4. Label cardinality protection (max 1000 unique combinations per metric)
    5. Optional HTTP server for Prometheus scraping

Usage:
    >>> from desk_booking.observability.collector import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter('desk_booking_reservations_created_total',
    ...                       labels={'slot': 'MORNING'})
    >>> metrics = collector.get_metrics()

Components take an optional collector argument; tests pass one built on a
private ``CollectorRegistry`` so repeated construction never collides in the
default registry.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from .constants import (
    AVAILABILITY_CHECKS_TOTAL,
    CANCELLATIONS_TOTAL,
    LATENCY_BUCKETS,
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

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """
    Definition for a metric that can be instantiated.

    Holds the type, description, labels and histogram buckets of a metric.
    """

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    # === Admission ===
    RESERVATIONS_CREATED_TOTAL: MetricDefinition(
        RESERVATIONS_CREATED_TOTAL,
        "counter",
        "Total reservations admitted",
        ("slot",),
    ),
    RESERVATIONS_REJECTED_TOTAL: MetricDefinition(
        RESERVATIONS_REJECTED_TOTAL,
        "counter",
        "Total booking requests rejected",
        ("slot", "outcome"),
    ),
    CANCELLATIONS_TOTAL: MetricDefinition(
        CANCELLATIONS_TOTAL,
        "counter",
        "Total cancellation requests",
        ("outcome",),
    ),
    AVAILABILITY_CHECKS_TOTAL: MetricDefinition(
        AVAILABILITY_CHECKS_TOTAL,
        "counter",
        "Total availability computations",
        ("slot",),
    ),
    # === Settings ===
    SETTINGS_INITIALIZED_TOTAL: MetricDefinition(
        SETTINGS_INITIALIZED_TOTAL,
        "counter",
        "Times the settings row was created with defaults",
        (),
    ),
    SETTINGS_UPDATES_TOTAL: MetricDefinition(
        SETTINGS_UPDATES_TOTAL,
        "counter",
        "Total admin settings updates",
        (),
    ),
    # === Notifications ===
    NOTIFICATIONS_DISPATCHED_TOTAL: MetricDefinition(
        NOTIFICATIONS_DISPATCHED_TOTAL,
        "counter",
        "Total notifications delivered",
        ("kind",),
    ),
    NOTIFICATIONS_FAILED_TOTAL: MetricDefinition(
        NOTIFICATIONS_FAILED_TOTAL,
        "counter",
        "Total notifications whose delivery failed",
        ("kind",),
    ),
    NOTIFICATIONS_PENDING: MetricDefinition(
        NOTIFICATIONS_PENDING,
        "gauge",
        "Notification tasks currently in flight",
        (),
    ),
    # === Reminders ===
    REMINDER_SCANS_TOTAL: MetricDefinition(
        REMINDER_SCANS_TOTAL,
        "counter",
        "Total reminder scans",
        (),
    ),
    REMINDERS_SENT_TOTAL: MetricDefinition(
        REMINDERS_SENT_TOTAL,
        "counter",
        "Total reminders sent",
        (),
    ),
    REMINDERS_FAILED_TOTAL: MetricDefinition(
        REMINDERS_FAILED_TOTAL,
        "counter",
        "Total reminders skipped after a failure",
        (),
    ),
    # === Store ===
    STORE_LATENCY_SECONDS: MetricDefinition(
        STORE_LATENCY_SECONDS,
        "histogram",
        "Store operation latency",
        ("backend", "operation"),
        buckets=LATENCY_BUCKETS,
    ),
    STORE_LUA_EXECUTIONS_TOTAL: MetricDefinition(
        STORE_LUA_EXECUTIONS_TOTAL,
        "counter",
        "Total Lua script executions",
        ("script_name",),
    ),
}


class UnifiedMetricsCollector:
    """
    Metrics collector keeping a dict snapshot alongside Prometheus metrics.

    Thread Safety:
        All operations use RLock for thread-safe access.

    Cardinality Protection:
        At most MAX_LABEL_COMBINATIONS unique label combinations are tracked
        per metric; further combinations are dropped with a warning.

    Example:
        >>> collector = UnifiedMetricsCollector(registry=CollectorRegistry())
        >>> collector.inc_counter('desk_booking_cancellations_total',
        ...                       labels={'outcome': 'success'})
        >>> collector.get_counter('desk_booking_cancellations_total',
        ...                       labels={'outcome': 'success'})
        1
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to register Prometheus metrics
            registry: Optional Prometheus CollectorRegistry for testing
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histogram_counts: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )

        self._lock = threading.RLock()

        self._prom_metrics: dict[str, Any] = {}
        self._label_combinations: dict[str, set[str]] = defaultdict(set)
        self._server_running = False

        logger.debug(
            f"UnifiedMetricsCollector initialized "
            f"(prometheus={'enabled' if self._enable_prometheus else 'disabled'})"
        )

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a stable string key."""
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        """
        Check if adding this label combination would exceed cardinality limit.

        Returns:
            True if the label combination is allowed, False otherwise
        """
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {label_key}"
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom_metric(self, name: str, metric_type: str) -> Any | None:
        """Get or create the Prometheus metric backing ``name``."""
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name in self._prom_metrics:
                return self._prom_metrics[name]

            defn = METRIC_DEFINITIONS.get(name)
            if defn is not None and defn.metric_type != metric_type:
                logger.warning(
                    f"Metric {name} is a {defn.metric_type}, not a {metric_type}"
                )
                return None
            description = defn.description if defn else f"Dynamic {metric_type}: {name}"
            label_names = list(defn.label_names) if defn else []

            try:
                if metric_type == "counter":
                    metric: Any = Counter(
                        name, description, label_names, registry=self._registry
                    )
                elif metric_type == "gauge":
                    metric = Gauge(
                        name, description, label_names, registry=self._registry
                    )
                else:
                    buckets = defn.buckets if defn and defn.buckets else LATENCY_BUCKETS
                    metric = Histogram(
                        name,
                        description,
                        label_names,
                        buckets=buckets,
                        registry=self._registry,
                    )
            except ValueError as e:
                # Duplicate registration in a shared registry
                logger.warning(f"Failed to create Prometheus {metric_type} {name}: {e}")
                return None

            self._prom_metrics[name] = metric
            return metric

    # === Counter Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Args:
            name: Metric name
            value: Value to increment by (must be positive)
            labels: Optional labels dict

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        label_key = self._labels_to_key(labels)

        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

        prom_counter = self._get_or_create_prom_metric(name, "counter")
        if prom_counter is not None:
            try:
                if labels:
                    prom_counter.labels(**labels).inc(value)
                else:
                    prom_counter.inc(value)
            except ValueError as e:
                logger.debug(f"Prometheus counter update failed for {name}: {e}")

    # === Gauge Operations ===

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to a specific value."""
        label_key = self._labels_to_key(labels)

        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] = value

        prom_gauge = self._get_or_create_prom_metric(name, "gauge")
        if prom_gauge is not None:
            try:
                if labels:
                    prom_gauge.labels(**labels).set(value)
                else:
                    prom_gauge.set(value)
            except ValueError as e:
                logger.debug(f"Prometheus gauge update failed for {name}: {e}")

    # === Histogram Operations ===

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        label_key = self._labels_to_key(labels)

        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._histogram_counts[name][label_key] += 1

        prom_histogram = self._get_or_create_prom_metric(name, "histogram")
        if prom_histogram is not None:
            try:
                if labels:
                    prom_histogram.labels(**labels).observe(value)
                else:
                    prom_histogram.observe(value)
            except ValueError as e:
                logger.debug(f"Prometheus histogram observe failed for {name}: {e}")

    # === Snapshot Operations ===

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current value of one counter series (0 if never incremented)."""
        with self._lock:
            return self._counters.get(name, {}).get(self._labels_to_key(labels), 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Current value of one gauge series (0.0 if never set)."""
        with self._lock:
            return self._gauges.get(name, {}).get(self._labels_to_key(labels), 0.0)

    def get_histogram_count(
        self, name: str, labels: dict[str, str] | None = None
    ) -> int:
        """Number of observations recorded for one histogram series."""
        with self._lock:
            return self._histogram_counts.get(name, {}).get(
                self._labels_to_key(labels), 0
            )

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns a dict suitable for JSON serialization with structure:
        {
            "counters": {"metric_name": {"label_key": value, ...}, ...},
            "gauges": {"metric_name": {"label_key": value, ...}, ...}
        }

        Histogram observations are only exported through Prometheus.
        """
        with self._lock:
            counters = {
                name: dict(label_values)
                for name, label_values in self._counters.items()
            }
            gauges = {
                name: dict(label_values) for name, label_values in self._gauges.items()
            }

        return {"counters": counters, "gauges": gauges}

    # === Lifecycle ===

    def reset(self) -> None:
        """Reset the dict snapshot. Prometheus series are left untouched."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histogram_counts.clear()
            self._label_combinations.clear()

        logger.debug("Metrics collector reset")

    # === Prometheus HTTP Server ===

    def start_http_server(self, host: str = "127.0.0.1", port: int = 9090) -> bool:
        """
        Start the Prometheus HTTP server for metrics scraping.

        Binds to localhost by default. Pass ``host="0.0.0.0"`` for access from
        outside a container.

        Returns:
            True if the server is running, False if it failed to start
        """
        if self._server_running:
            logger.warning("Prometheus server already running")
            return True

        try:
            start_http_server(port, addr=host, registry=self._registry)
        except OSError as e:
            logger.error(f"Failed to start Prometheus server: {e}")
            return False

        self._server_running = True
        logger.info(f"Prometheus metrics server started on {host}:{port}")
        return True

    @property
    def prometheus_enabled(self) -> bool:
        return self._enable_prometheus

    @property
    def server_running(self) -> bool:
        return self._server_running


# =============================================================================
# Singleton Pattern
# =============================================================================

_global_collector: UnifiedMetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(
    enable_prometheus: bool = True,
) -> UnifiedMetricsCollector:
    """
    Get or create the global metrics collector singleton.

    Args:
        enable_prometheus: Whether to enable Prometheus metrics
            (only used on first call)
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = UnifiedMetricsCollector(
                    enable_prometheus=enable_prometheus
                )

    return _global_collector


def resolve_metrics_collector(
    enabled: bool,
    collector: UnifiedMetricsCollector | None = None,
) -> UnifiedMetricsCollector | None:
    """
    Pick the collector a component should record into.

    Returns None when metrics are disabled, the explicit collector when one
    was injected, and the global singleton otherwise.
    """
    if not enabled:
        return None
    if collector is not None:
        return collector
    return get_metrics_collector()


def reset_metrics_collector() -> None:
    """
    Reset the global metrics collector singleton (mainly for testing).

    The next call to get_metrics_collector() creates a fresh instance.
    """
    global _global_collector
    with _collector_lock:
        if _global_collector:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
    "resolve_metrics_collector",
]

# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for the observability collector module.

Tests cover:
- MetricDefinition and the METRIC_DEFINITIONS registry
- Counter, Gauge, and Histogram operations
- Label cardinality protection
- Prometheus integration with a private registry
- Singleton and resolve helpers
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from desk_booking.observability.collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
    resolve_metrics_collector,
)
from desk_booking.observability.constants import (
    CANCELLATIONS_TOTAL,
    METRIC_PREFIX,
    NOTIFICATIONS_PENDING,
    RESERVATIONS_CREATED_TOTAL,
    STORE_LATENCY_SECONDS,
)


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def collector(registry: CollectorRegistry) -> UnifiedMetricsCollector:
    return UnifiedMetricsCollector(registry=registry)


class TestMetricDefinitions:
    def test_all_names_prefixed(self) -> None:
        """Every registered metric lives under the package prefix."""
        for name, defn in METRIC_DEFINITIONS.items():
            assert name.startswith(f"{METRIC_PREFIX}_")
            assert defn.name == name

    def test_histogram_has_buckets(self) -> None:
        defn = METRIC_DEFINITIONS[STORE_LATENCY_SECONDS]
        assert defn.metric_type == "histogram"
        assert defn.buckets
        assert defn.label_names == ("backend", "operation")

    def test_definition_defaults(self) -> None:
        defn = MetricDefinition("x_total", "counter", "X", ())
        assert defn.buckets is None


class TestCounters:
    def test_inc_and_read(self, collector: UnifiedMetricsCollector) -> None:
        collector.inc_counter(RESERVATIONS_CREATED_TOTAL, labels={"slot": "MORNING"})
        collector.inc_counter(
            RESERVATIONS_CREATED_TOTAL, value=2, labels={"slot": "MORNING"}
        )
        assert (
            collector.get_counter(RESERVATIONS_CREATED_TOTAL, labels={"slot": "MORNING"})
            == 3
        )
        assert (
            collector.get_counter(
                RESERVATIONS_CREATED_TOTAL, labels={"slot": "AFTERNOON"}
            )
            == 0
        )

    def test_negative_increment_rejected(
        self, collector: UnifiedMetricsCollector
    ) -> None:
        with pytest.raises(ValueError):
            collector.inc_counter(CANCELLATIONS_TOTAL, value=-1)

    def test_prometheus_counter_updated(
        self, collector: UnifiedMetricsCollector, registry: CollectorRegistry
    ) -> None:
        collector.inc_counter(CANCELLATIONS_TOTAL, labels={"outcome": "success"})
        assert (
            registry.get_sample_value(CANCELLATIONS_TOTAL, {"outcome": "success"})
            == 1.0
        )


class TestGaugesAndHistograms:
    def test_gauge(
        self, collector: UnifiedMetricsCollector, registry: CollectorRegistry
    ) -> None:
        collector.set_gauge(NOTIFICATIONS_PENDING, 4)
        collector.set_gauge(NOTIFICATIONS_PENDING, 2)
        assert collector.get_gauge(NOTIFICATIONS_PENDING) == 2
        assert registry.get_sample_value(NOTIFICATIONS_PENDING) == 2.0

    def test_histogram_observations(
        self, collector: UnifiedMetricsCollector, registry: CollectorRegistry
    ) -> None:
        labels = {"backend": "memory", "operation": "get_user"}
        for value in (0.001, 0.003):
            collector.observe_histogram(STORE_LATENCY_SECONDS, value, labels=labels)

        assert collector.get_histogram_count(STORE_LATENCY_SECONDS, labels) == 2
        assert registry.get_sample_value(
            f"{STORE_LATENCY_SECONDS}_count", labels
        ) == 2.0
        assert registry.get_sample_value(
            f"{STORE_LATENCY_SECONDS}_sum", labels
        ) == pytest.approx(0.004)
        assert "histograms" not in collector.get_metrics()

    def test_type_mismatch_skips_prometheus(
        self, collector: UnifiedMetricsCollector
    ) -> None:
        """Using a counter name as a gauge keeps the dict value only."""
        collector.set_gauge(CANCELLATIONS_TOTAL, 1)
        assert collector.get_gauge(CANCELLATIONS_TOTAL) == 1
        assert CANCELLATIONS_TOTAL not in collector._prom_metrics


class TestCardinality:
    def test_limit_drops_new_combinations(
        self, collector: UnifiedMetricsCollector
    ) -> None:
        with patch.object(UnifiedMetricsCollector, "MAX_LABEL_COMBINATIONS", 2):
            for outcome in ("success", "too_late", "not_found"):
                collector.inc_counter(CANCELLATIONS_TOTAL, labels={"outcome": outcome})

        assert collector.get_counter(CANCELLATIONS_TOTAL, {"outcome": "success"}) == 1
        assert collector.get_counter(CANCELLATIONS_TOTAL, {"outcome": "not_found"}) == 0


class TestLifecycle:
    def test_reset_clears_snapshot(self, collector: UnifiedMetricsCollector) -> None:
        collector.inc_counter(CANCELLATIONS_TOTAL, labels={"outcome": "success"})
        collector.reset()
        assert collector.get_metrics() == {"counters": {}, "gauges": {}}

    def test_prometheus_disabled(self) -> None:
        collector = UnifiedMetricsCollector(enable_prometheus=False)
        collector.inc_counter(CANCELLATIONS_TOTAL, labels={"outcome": "success"})
        assert not collector.prometheus_enabled
        assert collector._prom_metrics == {}
        assert collector.get_counter(CANCELLATIONS_TOTAL, {"outcome": "success"}) == 1

    def test_duplicate_registration_tolerated(self, registry: CollectorRegistry) -> None:
        """Two collectors on one registry: the second keeps dict values only."""
        first = UnifiedMetricsCollector(registry=registry)
        second = UnifiedMetricsCollector(registry=registry)
        first.inc_counter(CANCELLATIONS_TOTAL, labels={"outcome": "success"})
        second.inc_counter(CANCELLATIONS_TOTAL, labels={"outcome": "success"})

        assert second.get_counter(CANCELLATIONS_TOTAL, {"outcome": "success"}) == 1
        assert (
            registry.get_sample_value(CANCELLATIONS_TOTAL, {"outcome": "success"})
            == 1.0
        )

    def test_start_http_server(self, collector: UnifiedMetricsCollector) -> None:
        with patch(
            "desk_booking.observability.collector.start_http_server"
        ) as mock_start:
            assert collector.start_http_server(port=9999) is True
            assert collector.server_running
            # Second call is a no-op
            assert collector.start_http_server(port=9999) is True
        mock_start.assert_called_once()

    def test_start_http_server_failure(
        self, collector: UnifiedMetricsCollector
    ) -> None:
        with patch(
            "desk_booking.observability.collector.start_http_server",
            side_effect=OSError("address in use"),
        ):
            assert collector.start_http_server(port=9999) is False
        assert not collector.server_running


class TestSingleton:
    def test_get_returns_same_instance(self) -> None:
        reset_metrics_collector()
        with patch(
            "desk_booking.observability.collector.UnifiedMetricsCollector"
        ) as mock_cls:
            first = get_metrics_collector()
            second = get_metrics_collector()
        assert first is second
        mock_cls.assert_called_once()
        reset_metrics_collector()

    def test_resolve(self, collector: UnifiedMetricsCollector) -> None:
        assert resolve_metrics_collector(False, collector) is None
        assert resolve_metrics_collector(True, collector) is collector

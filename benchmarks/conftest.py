"""
Shared fixtures for benchmark tests.
"""

import pytest
from prometheus_client import CollectorRegistry

from desk_booking.backends.memory import MemoryStore
from desk_booking.config import BookingConfig
from desk_booking.engine.admission import ReservationAdmissionEngine
from desk_booking.observability.collector import UnifiedMetricsCollector


@pytest.fixture
def benchmark_config():
    """Configuration sized for benchmarking."""
    return BookingConfig(default_total_desks=10000)


@pytest.fixture
def memory_store():
    return MemoryStore(metrics=UnifiedMetricsCollector(registry=CollectorRegistry()))


@pytest.fixture
async def benchmark_users(memory_store):
    """A pool of members to book with."""
    return [
        await memory_store.create_user(f"bench{i}@example.com") for i in range(500)
    ]


@pytest.fixture
def admission_engine(memory_store, benchmark_config):
    return ReservationAdmissionEngine(
        memory_store,
        config=benchmark_config,
        metrics_collector=UnifiedMetricsCollector(registry=CollectorRegistry()),
    )

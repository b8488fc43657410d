"""
Shared fixtures for the desk booking test suite.

Every component gets a collector built on a private CollectorRegistry so that
constructing many engines never collides in the default Prometheus registry.
"""

from datetime import date, datetime, timezone

import pytest
from prometheus_client import CollectorRegistry

from desk_booking.backends.memory import MemoryStore
from desk_booking.clock import FixedClock
from desk_booking.config import BookingConfig
from desk_booking.engine.admission import ReservationAdmissionEngine
from desk_booking.engine.settings import SettingsProvider
from desk_booking.notifications.dispatcher import NotificationDispatcher
from desk_booking.notifications.logging_notifier import LoggingNotifier
from desk_booking.observability.collector import (
    UnifiedMetricsCollector,
    reset_metrics_collector,
)

# Monday; slots start 08:00 and 13:00 UTC by default
BOOKING_DAY = date(2024, 6, 10)
NOW = datetime(2024, 6, 9, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_global_collector():
    yield
    reset_metrics_collector()


@pytest.fixture
def metrics():
    return UnifiedMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def config():
    return BookingConfig()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store(metrics):
    return MemoryStore(metrics=metrics)


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def settings_provider(store, config, clock, metrics):
    return SettingsProvider(store, config, clock, metrics)


@pytest.fixture
def dispatcher(store, notifier, config, metrics):
    return NotificationDispatcher(store, notifier, config, metrics)


@pytest.fixture
def engine(store, config, clock, settings_provider, dispatcher, metrics):
    return ReservationAdmissionEngine(
        store,
        config=config,
        clock=clock,
        settings_provider=settings_provider,
        dispatcher=dispatcher,
        metrics_collector=metrics,
    )


@pytest.fixture
async def member(store):
    return await store.create_user("ada@example.com", "Ada", "Lovelace")


@pytest.fixture
async def other_member(store):
    return await store.create_user("grace@example.com", "Grace", "Hopper")

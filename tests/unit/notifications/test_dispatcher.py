"""Tests for fire-and-forget notification delivery."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from desk_booking.config import BookingConfig
from desk_booking.notifications import NotificationDispatcher
from desk_booking.observability.constants import (
    NOTIFICATIONS_DISPATCHED_TOTAL,
    NOTIFICATIONS_FAILED_TOTAL,
    NOTIFICATIONS_PENDING,
)
from desk_booking.types import CoworkingSettings, NotificationKind, Slot

DAY = date(2024, 6, 10)


@pytest.fixture
async def reservation(store, member):
    return await store.create_reservation(member.id, DAY, Slot.MORNING)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_delivers_in_background(
        self, dispatcher, reservation, notifier, metrics
    ):
        task = dispatcher.dispatch(
            reservation, CoworkingSettings(), NotificationKind.CONFIRMATION
        )
        assert task is not None
        assert dispatcher.pending == 1

        assert await task is True
        await asyncio.sleep(0)
        assert dispatcher.pending == 0
        assert len(notifier.sent) == 1
        assert (
            metrics.get_counter(NOTIFICATIONS_DISPATCHED_TOTAL, {"kind": "confirmation"})
            == 1
        )
        assert metrics.get_gauge(NOTIFICATIONS_PENDING) == 0

    @pytest.mark.asyncio
    async def test_disabled(self, store, notifier, metrics, reservation):
        dispatcher = NotificationDispatcher(
            store, notifier, BookingConfig(notifications_enabled=False), metrics
        )
        task = dispatcher.dispatch(
            reservation, CoworkingSettings(), NotificationKind.CONFIRMATION
        )
        assert task is None
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_drain_waits_for_all(self, dispatcher, reservation, notifier):
        for kind in (NotificationKind.CONFIRMATION, NotificationKind.CANCELLATION):
            dispatcher.dispatch(reservation, CoworkingSettings(), kind)
        await dispatcher.drain(timeout=1.0)
        assert len(notifier.sent) == 2
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self, dispatcher):
        await dispatcher.drain()


class TestDeliverFailures:
    @pytest.mark.asyncio
    async def test_notifier_error_counted(self, dispatcher, reservation, metrics):
        dispatcher.notifier = AsyncMock()
        dispatcher.notifier.notify.side_effect = OSError("smtp down")

        task = dispatcher.dispatch(
            reservation, CoworkingSettings(), NotificationKind.CANCELLATION
        )
        assert await task is False
        assert (
            metrics.get_counter(NOTIFICATIONS_FAILED_TOTAL, {"kind": "cancellation"})
            == 1
        )

    @pytest.mark.asyncio
    async def test_missing_user(self, dispatcher, store, metrics, notifier):
        orphan = await store.create_reservation("ghost", DAY, Slot.AFTERNOON)
        task = dispatcher.dispatch(
            orphan, CoworkingSettings(), NotificationKind.CONFIRMATION
        )
        assert await task is False
        assert notifier.sent == []
        assert (
            metrics.get_counter(NOTIFICATIONS_FAILED_TOTAL, {"kind": "confirmation"})
            == 1
        )

    @pytest.mark.asyncio
    async def test_cancelled_delivery_propagates(self, dispatcher, reservation):
        blocked = asyncio.Event()

        async def slow_notify(*args):
            await blocked.wait()

        dispatcher.notifier = AsyncMock()
        dispatcher.notifier.notify.side_effect = slow_notify

        task = dispatcher.dispatch(
            reservation, CoworkingSettings(), NotificationKind.REMINDER
        )
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

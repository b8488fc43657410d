"""Tests for the day-ahead reminder scan."""

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from desk_booking.clock import FixedClock
from desk_booking.config import BookingConfig
from desk_booking.exceptions import StoreConnectionError
from desk_booking.observability.constants import (
    REMINDER_SCANS_TOTAL,
    REMINDERS_FAILED_TOTAL,
    REMINDERS_SENT_TOTAL,
)
from desk_booking.reminders import ReminderScanner
from desk_booking.types import NotificationKind, ReservationStatus, Slot

# The conftest clock reads 2024-06-09 12:00 UTC, so the target day is the 10th
TARGET = date(2024, 6, 10)


@pytest.fixture
def scanner(store, notifier, config, clock, settings_provider, metrics):
    return ReminderScanner(
        store,
        notifier,
        config=config,
        clock=clock,
        settings_provider=settings_provider,
        metrics_collector=metrics,
    )


class TestTargetDate:
    def test_tomorrow_in_utc(self, scanner):
        assert scanner.target_date() == TARGET

    def test_just_before_midnight(self, scanner, clock):
        clock.set(datetime(2024, 6, 9, 23, 59, tzinfo=timezone.utc))
        assert scanner.target_date() == TARGET

    def test_configured_zone(self, store, notifier, metrics):
        """22:30 UTC is already the next morning in Tokyo."""
        clock = FixedClock(datetime(2024, 6, 9, 22, 30, tzinfo=timezone.utc))
        scanner = ReminderScanner(
            store,
            notifier,
            config=BookingConfig(timezone="Asia/Tokyo"),
            clock=clock,
            metrics_collector=metrics,
        )
        assert scanner.target_date() == date(2024, 6, 11)

    def test_lead_time(self, store, notifier, clock, metrics):
        scanner = ReminderScanner(
            store,
            notifier,
            config=BookingConfig(reminder_lead_time_hours=48),
            clock=clock,
            metrics_collector=metrics,
        )
        assert scanner.target_date() == date(2024, 6, 11)


class TestSendReservationReminders:
    @pytest.mark.asyncio
    async def test_sends_and_stamps(
        self, scanner, store, member, other_member, notifier, clock, metrics
    ):
        first = await store.create_reservation(member.id, TARGET, Slot.MORNING)
        second = await store.create_reservation(other_member.id, TARGET, Slot.AFTERNOON)

        sent = await scanner.send_reservation_reminders()

        assert sent == 2
        assert {email for email, _, _ in notifier.sent} == {
            member.email,
            other_member.email,
        }
        assert all(kind is NotificationKind.REMINDER for _, kind, _ in notifier.sent)
        for reservation in (first, second):
            stored = await store.get_reservation(reservation.id)
            assert stored.reminder_sent_at == clock.now()
        assert metrics.get_counter(REMINDERS_SENT_TOTAL) == 2
        assert metrics.get_counter(REMINDER_SCANS_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_second_run_sends_nothing(self, scanner, store, member, notifier):
        """The stamp makes the scan idempotent."""
        await store.create_reservation(member.id, TARGET, Slot.MORNING)

        assert await scanner.send_reservation_reminders() == 1
        assert await scanner.send_reservation_reminders() == 0
        assert len(notifier.sent) == 1

    @pytest.mark.asyncio
    async def test_skips_other_days_and_cancelled(
        self, scanner, store, member, other_member
    ):
        await store.create_reservation(member.id, date(2024, 6, 11), Slot.MORNING)
        await store.create_reservation(member.id, date(2024, 6, 9), Slot.AFTERNOON)
        cancelled = await store.create_reservation(other_member.id, TARGET, Slot.MORNING)
        await store.update_reservation(cancelled.id, status=ReservationStatus.CANCELLED)

        assert await scanner.send_reservation_reminders() == 0

    @pytest.mark.asyncio
    async def test_already_stamped_skipped(self, scanner, store, member, notifier):
        reservation = await store.create_reservation(member.id, TARGET, Slot.MORNING)
        await store.update_reservation(
            reservation.id, reminder_sent_at=datetime(2024, 6, 9, tzinfo=timezone.utc)
        )
        assert await scanner.send_reservation_reminders() == 0
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_message_uses_settings_hours(
        self, scanner, store, member, notifier, settings_provider
    ):
        await settings_provider.update_settings(afternoon_start_hour=14)
        await store.create_reservation(member.id, TARGET, Slot.AFTERNOON)

        await scanner.send_reservation_reminders()

        _, _, message = notifier.sent[0]
        assert "AFTERNOON (14:00-18:00)" in message.text


class TestPerReservationFailures:
    @pytest.mark.asyncio
    async def test_notifier_failure_skips_one(
        self, scanner, store, member, other_member, metrics
    ):
        """One failing send does not stop the batch and is not stamped."""
        failing = await store.create_reservation(member.id, TARGET, Slot.MORNING)
        ok = await store.create_reservation(other_member.id, TARGET, Slot.MORNING)

        async def notify(user, details, kind):
            if details.reservation_id == failing.id:
                raise ConnectionError("smtp down")

        scanner.notifier = AsyncMock()
        scanner.notifier.notify.side_effect = notify

        assert await scanner.send_reservation_reminders() == 1
        assert (await store.get_reservation(failing.id)).reminder_sent_at is None
        assert (await store.get_reservation(ok.id)).reminder_sent_at is not None
        assert metrics.get_counter(REMINDERS_FAILED_TOTAL) == 1

        # The failed one is retried on the next run
        scanner.notifier.notify.side_effect = None
        assert await scanner.send_reservation_reminders() == 1

    @pytest.mark.asyncio
    async def test_stamp_failure_counted(self, scanner, store, member, metrics):
        await store.create_reservation(member.id, TARGET, Slot.MORNING)
        with patch.object(
            store,
            "update_reservation",
            AsyncMock(side_effect=StoreConnectionError("down")),
        ):
            assert await scanner.send_reservation_reminders() == 0
        assert metrics.get_counter(REMINDERS_FAILED_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_missing_user_counted(self, scanner, store, notifier, metrics):
        await store.create_reservation("ghost", TARGET, Slot.MORNING)
        assert await scanner.send_reservation_reminders() == 0
        assert notifier.sent == []
        assert metrics.get_counter(REMINDERS_FAILED_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(self, scanner, store):
        with patch.object(
            store,
            "list_reservations",
            AsyncMock(side_effect=StoreConnectionError("down")),
        ):
            with pytest.raises(StoreConnectionError):
                await scanner.send_reservation_reminders()


class TestPeriodicRunner:
    @pytest.mark.asyncio
    async def test_start_runs_scan_and_stop_cancels(
        self, store, notifier, clock, metrics, member
    ):
        await store.create_reservation(member.id, TARGET, Slot.MORNING)
        scanner = ReminderScanner(
            store,
            notifier,
            config=BookingConfig(reminder_interval_seconds=0.01),
            clock=clock,
            metrics_collector=metrics,
        )

        await scanner.start()
        assert scanner.is_running
        await asyncio.sleep(0.05)
        await scanner.stop()

        assert not scanner.is_running
        assert len(notifier.sent) == 1
        assert metrics.get_counter(REMINDER_SCANS_TOTAL) >= 2

    @pytest.mark.asyncio
    async def test_loop_survives_scan_errors(self, scanner, store, metrics):
        scanner.config = BookingConfig(reminder_interval_seconds=0.01)
        with patch.object(
            store,
            "list_reservations",
            AsyncMock(side_effect=StoreConnectionError("down")),
        ) as mock_list:
            await scanner.start()
            await asyncio.sleep(0.05)
            await scanner.stop()
        assert mock_list.await_count >= 2

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self, scanner):
        await scanner.start()
        task = scanner._scan_task
        await scanner.start()
        assert scanner._scan_task is task
        await scanner.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, scanner):
        await scanner.stop()
        assert not scanner.is_running

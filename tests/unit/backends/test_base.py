from datetime import date

import pytest

from desk_booking.backends.base import BaseStore, HealthCheckResult, slot_key
from desk_booking.types import ReservationQuery, Slot


class _ListOnlyStore(BaseStore):
    """Minimal concrete store exercising the default helpers."""

    backend_type = "list_only"

    def __init__(self, reservations):
        super().__init__(namespace="test")
        self.reservations = reservations
        self.started = False
        self.stopped = False

    async def create_user(self, email, first_name="", last_name="", role=None):
        raise NotImplementedError

    async def get_user(self, user_id):
        return None

    async def count_users(self):
        return 0

    async def get_settings(self):
        return None

    async def create_settings(self, settings):
        return settings

    async def update_settings(self, settings):
        return settings

    async def get_reservation(self, reservation_id):
        return None

    async def list_reservations(self, query=None):
        query = query or ReservationQuery()
        return [r for r in self.reservations if query.matches(r)]

    async def create_reservation(self, user_id, day, slot, capacity=None):
        raise NotImplementedError

    async def update_reservation(self, reservation_id, status=None, reminder_sent_at=None):
        return None

    async def delete_reservation(self, reservation_id):
        return False

    async def health_check(self):
        return HealthCheckResult(True, self.backend_type, self.namespace)

    async def clear(self):
        self.reservations = []

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True


class TestBaseStore:
    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            BaseStore()  # type: ignore[abstract]

    def test_slot_key(self):
        assert slot_key(date(2024, 6, 10), Slot.AFTERNOON) == "2024-06-10/AFTERNOON"

    @pytest.mark.asyncio
    async def test_find_and_count_use_list(self):
        from desk_booking.types import Reservation

        reservations = [
            Reservation(id="a", user_id="u1", date=date(2024, 6, 10), slot=Slot.MORNING),
            Reservation(id="b", user_id="u2", date=date(2024, 6, 10), slot=Slot.MORNING),
        ]
        store = _ListOnlyStore(reservations)

        assert await store.count_reservations() == 2
        assert (await store.find_reservation(ReservationQuery(user_id="u2"))).id == "b"
        assert await store.find_reservation(ReservationQuery(user_id="u3")) is None

    @pytest.mark.asyncio
    async def test_context_manager_lifecycle(self):
        store = _ListOnlyStore([])
        async with store as entered:
            assert entered is store
            assert store.started
        assert store.stopped

    def test_health_check_result_defaults(self):
        result = HealthCheckResult(healthy=False, backend_type="x", namespace="n")
        assert result.error is None
        assert result.metadata is None

import typing
from datetime import date, datetime, timedelta, timezone

import pytest

from desk_booking.types import (
    Availability,
    Failure,
    Reservation,
    ReservationError,
    ReservationQuery,
    ReservationStatus,
    Role,
    Slot,
    Success,
    User,
    sort_reservations,
)


def _reservation(**overrides):
    values = {
        "id": "res-1",
        "user_id": "user-1",
        "date": date(2024, 6, 10),
        "slot": Slot.MORNING,
    }
    values.update(overrides)
    return Reservation(**values)


class TestSlot:
    def test_values(self):
        assert Slot.MORNING.value == "MORNING"
        assert Slot.AFTERNOON.value == "AFTERNOON"

    def test_order(self):
        """MORNING sorts before AFTERNOON."""
        assert Slot.MORNING.order < Slot.AFTERNOON.order

    def test_from_string(self):
        assert Slot("AFTERNOON") is Slot.AFTERNOON
        with pytest.raises(ValueError):
            Slot("EVENING")


class TestReservation:
    def test_defaults(self):
        reservation = _reservation()
        assert reservation.status is ReservationStatus.CONFIRMED
        assert reservation.is_confirmed
        assert reservation.reminder_sent_at is None
        assert reservation.slot_key == "2024-06-10/MORNING"

    def test_dict_round_trip(self):
        """Stored form is flat strings; the reminder stamp survives."""
        stamp = datetime(2024, 6, 9, 10, 0, tzinfo=timezone.utc)
        reservation = _reservation(
            status=ReservationStatus.CANCELLED, reminder_sent_at=stamp
        )
        data = reservation.to_dict()

        assert data["date"] == "2024-06-10"
        assert data["slot"] == "MORNING"
        assert data["status"] == "CANCELLED"
        assert Reservation.from_dict(data) == reservation

    def test_empty_reminder_reads_as_none(self):
        data = _reservation().to_dict()
        assert data["reminder_sent_at"] == ""
        assert Reservation.from_dict(data).reminder_sent_at is None


class TestReservationQuery:
    def test_field_types_resolve(self):
        """The ``date`` field does not shadow the ``date`` type in the class body."""
        query = ReservationQuery(date=date(2024, 6, 10), slot=Slot.MORNING)
        hints = typing.get_type_hints(ReservationQuery)

        assert query.date == date(2024, 6, 10)
        assert typing.get_args(hints["date"]) == (date, type(None))
        assert typing.get_args(hints["slot"]) == (Slot, type(None))

    def test_empty_query_matches_everything(self):
        assert ReservationQuery().matches(_reservation())

    def test_each_filter(self):
        reservation = _reservation()
        assert ReservationQuery(user_id="user-1").matches(reservation)
        assert not ReservationQuery(user_id="user-2").matches(reservation)
        assert not ReservationQuery(date=date(2024, 6, 11)).matches(reservation)
        assert not ReservationQuery(slot=Slot.AFTERNOON).matches(reservation)
        assert not ReservationQuery(status=ReservationStatus.CANCELLED).matches(
            reservation
        )

    def test_reminder_pending(self):
        pending = _reservation()
        reminded = _reservation(reminder_sent_at=datetime.now(timezone.utc))

        assert ReservationQuery(reminder_pending=True).matches(pending)
        assert not ReservationQuery(reminder_pending=True).matches(reminded)
        assert ReservationQuery(reminder_pending=False).matches(reminded)


class TestSortReservations:
    def test_date_then_slot_then_creation(self):
        base = datetime(2024, 6, 1, tzinfo=timezone.utc)
        later_day = _reservation(id="c", date=date(2024, 6, 11))
        afternoon = _reservation(id="b", slot=Slot.AFTERNOON, created_at=base)
        morning_late = _reservation(id="a2", created_at=base + timedelta(minutes=5))
        morning_early = _reservation(id="a1", created_at=base)

        ordered = sort_reservations([later_day, afternoon, morning_late, morning_early])
        assert [r.id for r in ordered] == ["a1", "a2", "b", "c"]


class TestUser:
    def test_display_name(self):
        assert User(id="u", email="a@b.c", first_name="Ada").display_name == "Ada"
        assert User(id="u", email="a@b.c").display_name == "a@b.c"

    def test_roles(self):
        assert User(id="u", email="a@b.c", role=Role.ADMIN).is_admin
        assert not User(id="u", email="a@b.c").is_admin

    def test_dict_round_trip(self):
        user = User(id="u", email="a@b.c", first_name="Ada", last_name="L")
        assert User.from_dict(user.to_dict()) == user


class TestResults:
    def test_success(self):
        result = Success(_reservation())
        assert result.success is True
        assert result.to_dict()["data"]["id"] == "res-1"

    def test_failure(self):
        result = Failure(ReservationError.TOO_LATE)
        assert result.success is False
        assert result.to_dict() == {"success": False, "error": "TOO_LATE"}

    def test_error_taxonomy(self):
        assert {e.value for e in ReservationError} == {
            "FULL",
            "DUPLICATE",
            "TOO_LATE",
            "NOT_FOUND",
            "UNAUTHORIZED",
        }


class TestAvailability:
    def test_is_full(self):
        assert Availability(available=0, total=3).is_full
        assert not Availability(available=1, total=3).is_full

    def test_to_dict(self):
        assert Availability(available=2, total=3).to_dict() == {
            "available": 2,
            "total": 3,
        }

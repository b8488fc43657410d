# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Clocks and calendar helpers.

Reservations are keyed by calendar day. Incoming timestamps are reduced to a
day in the deployment time zone, and a slot's start instant is rebuilt from
that day and the slot's start hour in the same zone.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigurationError


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Clock frozen at a given instant, for tests and replays.

    Example:
        >>> clock = FixedClock(datetime(2024, 6, 10, 7, 59, 59, tzinfo=timezone.utc))
        >>> clock.advance(seconds=1)
        >>> clock.now().hour
        8
    """

    def __init__(self, instant: datetime):
        self._instant = _ensure_aware(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = _ensure_aware(instant)

    def advance(self, **delta: float) -> None:
        """Move the clock forward by ``timedelta(**delta)``."""
        self._instant = self._instant + timedelta(**delta)


def _ensure_aware(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def resolve_timezone(name: str) -> tzinfo:
    """
    Look up an IANA time zone.

    Raises:
        ConfigurationError: If the zone is unknown
    """
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown time zone: {name!r}") from e


def normalize_date(value: date | datetime, tz: tzinfo = timezone.utc) -> date:
    """
    Strip the time of day from a booking date.

    Aware datetimes are first converted to ``tz`` so that, for example,
    23:30 UTC books the next local day in a zone east of UTC. Naive datetimes
    are taken as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def slot_start_instant(day: date, hour: int, tz: tzinfo = timezone.utc) -> datetime:
    """Instant at which a slot starting at ``hour`` begins on ``day`` in ``tz``."""
    return datetime.combine(day, time(hour=hour), tzinfo=tz)


__all__ = [
    "FixedClock",
    "SystemClock",
    "normalize_date",
    "resolve_timezone",
    "slot_start_instant",
]

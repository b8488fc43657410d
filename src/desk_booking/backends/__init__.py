# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Store implementations for users, settings and reservations.

Available stores:
- BaseStore: Abstract base class defining the store interface
- MemoryStore: In-memory store for single-process deployments and tests
- RedisStore: Redis-based store for multi-process deployments (requires redis extra)

Supporting types:
- HealthCheckResult: Structured result from store health checks

Note: RedisStore is lazily imported to avoid requiring the redis package
when only using MemoryStore.
"""

from typing import TYPE_CHECKING, cast

from desk_booking.backends.base import BaseStore, HealthCheckResult, slot_key
from desk_booking.backends.memory import MemoryStore

# Lazy imports for optional redis store
if TYPE_CHECKING:
    from desk_booking.backends.redis import RedisStore

__all__ = [
    "BaseStore",
    "HealthCheckResult",
    "MemoryStore",
    # Redis store (lazy loaded)
    "RedisStore",
    "slot_key",
]


def __getattr__(name: str) -> type:
    """Lazy import for the optional redis store."""
    if name == "RedisStore":
        try:
            from desk_booking.backends import redis as redis_module

            return cast(type, getattr(redis_module, name))
        except ImportError as e:  # pragma: no cover
            raise ImportError(  # pragma: no cover
                f"'{name}' requires the 'redis' extra. "
                "Install with: pip install desk-booking-engine[redis]"
            ) from e
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
RedisStore for the desk booking engine

This module provides a Redis-backed store so several application processes can
admit bookings against the same data.

Key Features:
- Atomic Lua scripts for insert, status transition and delete
- Unique active-booking key per (user, date, slot)
- Confirmed-id set per (date, slot) used for atomic capacity checks
- All keys share one hash tag so multi-key scripts work on Redis Cluster
"""

import asyncio
import contextlib
import logging
import os
import uuid
from collections.abc import Iterator
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, ClassVar

from redis.asyncio import Redis
from redis.exceptions import (
    ConnectionError,
    NoScriptError,
    RedisError,
    TimeoutError,
)

from ..exceptions import (
    CapacityExceededError,
    StoreConnectionError,
    StoreOperationError,
    UniqueConstraintError,
)
from ..observability.collector import UnifiedMetricsCollector
from ..observability.constants import STORE_LUA_EXECUTIONS_TOTAL
from ..types.reservation import (
    Reservation,
    ReservationQuery,
    ReservationStatus,
    Slot,
    sort_reservations,
)
from ..types.settings import CoworkingSettings
from ..types.user import Role, User
from .base import BaseStore, HealthCheckResult, slot_key

logger = logging.getLogger(__name__)


class RedisStore(BaseStore):
    """
    A Redis store for users, settings and reservations.

    Key layout (``{ns}`` is the namespace wrapped in a hash tag):
    - ``{ns}:settings``: settings hash
    - ``{ns}:user:<id>``: user hash; ``{ns}:users`` set; ``{ns}:user_emails`` hash
    - ``{ns}:res:<id>``: reservation hash; ``{ns}:res:all`` set
    - ``{ns}:res:by_user:<user_id>`` and ``{ns}:res:by_date:<date>``: id sets
    - ``{ns}:res:confirmed:<date>/<slot>``: confirmed ids of one slot
    - ``{ns}:res:active:<user_id>:<date>/<slot>``: id of the user's active booking

    Deployment Requirements:
    - Redis 4.0+ (variadic HSET inside Lua)
    """

    backend_type = "redis"

    # Class-level Lua scripts loaded from files
    _lua_scripts: ClassVar[dict[str, str]] = {}

    SCRIPT_NAMES: ClassVar[tuple[str, ...]] = (
        "create_user",
        "create_reservation",
        "transition_reservation",
        "delete_reservation",
        "create_settings",
    )

    @classmethod
    def _load_lua_scripts(cls) -> None:
        """Load Lua scripts from files at class level."""
        if cls._lua_scripts:
            return  # Already loaded

        lua_dir = Path(__file__).parent / "lua"

        for script_name in cls.SCRIPT_NAMES:
            script_path = lua_dir / f"{script_name}.lua"
            if script_path.exists():
                cls._lua_scripts[script_name] = script_path.read_text(encoding="utf-8")
            else:
                logger.warning(f"Lua script not found: {script_path}")

    def __init__(
        self,
        redis_url: str | None = None,
        redis_client: Any | None = None,
        namespace: str = "desk_booking",
        max_connections: int = 10,
        metrics: UnifiedMetricsCollector | None = None,
    ) -> None:
        """
        Initialize the Redis store.

        Args:
            redis_url: Redis connection URL. If not provided, falls back to REDIS_URL
                environment variable, then to "redis://localhost:6379".
            redis_client: Optional pre-configured client. It must be created with
                ``decode_responses=True``; the store never closes it.
            namespace: Namespace prefix for keys
            max_connections: Maximum connections in the owned pool
            metrics: Optional collector for latency and Lua execution counts
        """
        super().__init__(namespace, metrics=metrics)

        self.redis_url = (
            redis_url or os.environ.get("REDIS_URL") or "redis://localhost:6379"
        )
        self.max_connections = max_connections

        self._redis: Any | None = redis_client
        self._owned_redis = redis_client is None
        self._event_loop_id: int | None = None
        self._connected = False
        self._connection_lock = asyncio.Lock()

        self._script_shas: dict[str, str] = {}

        self.key_prefix = f"{{{namespace}}}"

    # === Keys ===

    def _settings_key(self) -> str:
        return f"{self.key_prefix}:settings"

    def _user_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:user:{user_id}"

    def _users_key(self) -> str:
        return f"{self.key_prefix}:users"

    def _user_emails_key(self) -> str:
        return f"{self.key_prefix}:user_emails"

    def _reservation_key(self, reservation_id: str) -> str:
        return f"{self.key_prefix}:res:{reservation_id}"

    def _all_reservations_key(self) -> str:
        return f"{self.key_prefix}:res:all"

    def _user_reservations_key(self, user_id: str) -> str:
        return f"{self.key_prefix}:res:by_user:{user_id}"

    def _date_reservations_key(self, day: date) -> str:
        return f"{self.key_prefix}:res:by_date:{day.isoformat()}"

    def _confirmed_key(self, day: date, slot: Slot) -> str:
        return f"{self.key_prefix}:res:confirmed:{slot_key(day, slot)}"

    def _active_key(self, user_id: str, day: date, slot: Slot) -> str:
        return f"{self.key_prefix}:res:active:{user_id}:{slot_key(day, slot)}"

    def _reservation_keys(self, reservation: Reservation) -> list[str]:
        """Keys touched by the create and delete scripts, in script order."""
        return [
            self._active_key(reservation.user_id, reservation.date, reservation.slot),
            self._confirmed_key(reservation.date, reservation.slot),
            self._reservation_key(reservation.id),
            self._all_reservations_key(),
            self._user_reservations_key(reservation.user_id),
            self._date_reservations_key(reservation.date),
        ]

    # === Connection ===

    async def _ensure_connected(self) -> Any:
        """Ensure a live connection bound to the running event loop."""
        loop_id = id(asyncio.get_running_loop())
        if self._redis is not None and self._connected and self._event_loop_id == loop_id:
            return self._redis

        async with self._connection_lock:
            if (
                self._redis is not None
                and self._connected
                and self._event_loop_id == loop_id
            ):
                return self._redis

            if self._owned_redis:
                # Pools are bound to the loop that created them
                self._redis = Redis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    max_connections=self.max_connections,
                    socket_connect_timeout=5.0,
                    socket_timeout=5.0,
                )

            if self._redis is None:
                raise StoreConnectionError("Redis client not initialized")

            try:
                await asyncio.wait_for(self._redis.ping(), timeout=5.0)
                self._script_shas.clear()
                await asyncio.wait_for(self._load_scripts(), timeout=10.0)
            except (ConnectionError, TimeoutError, asyncio.TimeoutError, OSError) as e:
                logger.error(f"Cannot connect to Redis at {self.redis_url}: {e}")
                self._connected = False
                if self._owned_redis:
                    await self._cleanup_connection(loop_id, self._redis)
                    self._redis = None
                raise StoreConnectionError(
                    f"Cannot connect to Redis at {self.redis_url}: {e}"
                ) from e

            self._connected = True
            self._event_loop_id = loop_id
            logger.info(f"RedisStore connected for loop {loop_id}")
            return self._redis

    async def _cleanup_connection(
        self, loop_id: int, connection: Any, timeout: float = 2.5
    ) -> None:
        """Close a Redis connection with timeout protection."""
        try:
            await asyncio.wait_for(connection.aclose(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Connection cleanup timed out for loop {loop_id}")
        except (RedisError, OSError) as e:
            logger.error(f"Error during connection cleanup: {e}")

    async def _load_scripts(self) -> None:
        """Load Lua scripts into Redis."""
        if not self._redis:
            raise StoreConnectionError("Redis client not initialized")

        self.__class__._load_lua_scripts()

        for script_name, script_source in self._lua_scripts.items():
            self._script_shas[script_name] = await self._redis.script_load(
                script_source
            )

    async def _evalsha_with_reload(
        self,
        redis_client: Any,
        script_name: str,
        num_keys: int,
        *args: Any,
    ) -> Any:
        """
        Execute EVALSHA with automatic script reload on NoScriptError.

        A restarted or failed-over Redis node has lost every loaded script.
        The scripts are reloaded and the call retried once.
        """
        script_sha = self._script_shas.get(script_name)
        if not script_sha:
            await self._load_scripts()
            script_sha = self._script_shas[script_name]

        if self._metrics is not None:
            self._metrics.inc_counter(
                STORE_LUA_EXECUTIONS_TOTAL, labels={"script_name": script_name}
            )

        try:
            return await redis_client.evalsha(script_sha, num_keys, *args)
        except NoScriptError:
            logger.warning(
                f"Script '{script_name}' not found in Redis (SHA: {script_sha}). "
                f"Reloading all Lua scripts..."
            )
            self._script_shas.clear()
            await self._load_scripts()

            new_sha = self._script_shas[script_name]
            logger.info(f"Scripts reloaded. Retrying with new SHA: {new_sha}")
            return await redis_client.evalsha(new_sha, num_keys, *args)

    @contextlib.contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        """Re-raise redis-py errors as store errors."""
        try:
            yield
        except (ConnectionError, TimeoutError) as e:
            self._connected = False
            logger.error(f"Redis connection error during {operation}: {e}")
            raise StoreConnectionError(f"Redis unavailable during {operation}") from e
        except RedisError as e:
            logger.error(f"Redis error during {operation}: {e}")
            raise StoreOperationError(f"Redis {operation} failed: {e}") from e

    # === Users ===

    async def create_user(
        self,
        email: str,
        first_name: str = "",
        last_name: str = "",
        role: Role = Role.MEMBER,
    ) -> User:
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        fields: list[Any] = []
        for name, value in user.to_dict().items():
            fields.extend([name, value])

        with self._timed("create_user"), self._translate_errors("create_user"):
            redis_client = await self._ensure_connected()
            created = await self._evalsha_with_reload(
                redis_client,
                "create_user",
                3,
                self._user_emails_key(),
                self._user_key(user.id),
                self._users_key(),
                email.lower(),
                user.id,
                *fields,
            )
        if int(created) != 1:
            raise StoreOperationError(f"User with email {email} already exists")
        return user

    async def get_user(self, user_id: str) -> User | None:
        with self._timed("get_user"), self._translate_errors("get_user"):
            redis_client = await self._ensure_connected()
            data = await redis_client.hgetall(self._user_key(user_id))
        return User.from_dict(data) if data else None

    async def count_users(self) -> int:
        with self._translate_errors("count_users"):
            redis_client = await self._ensure_connected()
            return int(await redis_client.scard(self._users_key()))

    # === Settings ===

    async def get_settings(self) -> CoworkingSettings | None:
        with self._timed("get_settings"), self._translate_errors("get_settings"):
            redis_client = await self._ensure_connected()
            data = await redis_client.hgetall(self._settings_key())
        return self._settings_from_hash(data)

    async def create_settings(self, settings: CoworkingSettings) -> CoworkingSettings:
        fields: list[Any] = []
        for name, value in settings.to_dict().items():
            fields.extend([name, value])

        with self._timed("create_settings"), self._translate_errors("create_settings"):
            redis_client = await self._ensure_connected()
            created = await self._evalsha_with_reload(
                redis_client, "create_settings", 1, self._settings_key(), *fields
            )
            if int(created) == 1:
                logger.debug(f"Created settings row {settings.id}")
                return settings
            data = await redis_client.hgetall(self._settings_key())

        stored = self._settings_from_hash(data)
        if stored is None:
            raise StoreOperationError("Settings row vanished after creation")
        return stored

    async def update_settings(self, settings: CoworkingSettings) -> CoworkingSettings:
        with self._timed("update_settings"), self._translate_errors("update_settings"):
            redis_client = await self._ensure_connected()
            await redis_client.hset(self._settings_key(), mapping=settings.to_dict())
        return settings

    def _settings_from_hash(self, data: dict[str, Any]) -> CoworkingSettings | None:
        if not data:
            return None
        try:
            return CoworkingSettings.from_dict(data)
        except (KeyError, ValueError) as e:
            raise StoreOperationError(f"Corrupt settings row: {e}") from e

    # === Reservations ===

    def _reservation_from_hash(self, data: dict[str, Any]) -> Reservation:
        try:
            return Reservation.from_dict(data)
        except (KeyError, ValueError) as e:
            raise StoreOperationError(f"Corrupt reservation row: {e}") from e

    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        with self._timed("get_reservation"), self._translate_errors("get_reservation"):
            redis_client = await self._ensure_connected()
            data = await redis_client.hgetall(self._reservation_key(reservation_id))
        return self._reservation_from_hash(data) if data else None

    def _index_key(self, query: ReservationQuery) -> str:
        """Smallest id set that contains every match of ``query``."""
        if (
            query.status is ReservationStatus.CONFIRMED
            and query.date is not None
            and query.slot is not None
        ):
            return self._confirmed_key(query.date, query.slot)
        if query.user_id is not None:
            return self._user_reservations_key(query.user_id)
        if query.date is not None:
            return self._date_reservations_key(query.date)
        return self._all_reservations_key()

    async def list_reservations(
        self, query: ReservationQuery | None = None
    ) -> list[Reservation]:
        query = query or ReservationQuery()
        with self._timed("list_reservations"), self._translate_errors(
            "list_reservations"
        ):
            redis_client = await self._ensure_connected()
            ids = await redis_client.smembers(self._index_key(query))
            if not ids:
                return []
            async with redis_client.pipeline(transaction=False) as pipe:
                for reservation_id in ids:
                    pipe.hgetall(self._reservation_key(reservation_id))
                rows = await pipe.execute()

        reservations = [self._reservation_from_hash(row) for row in rows if row]
        return sort_reservations([r for r in reservations if query.matches(r)])

    async def count_reservations(self, query: ReservationQuery | None = None) -> int:
        query = query or ReservationQuery()
        if (
            query.status is ReservationStatus.CONFIRMED
            and query.date is not None
            and query.slot is not None
            and query.user_id is None
            and query.reminder_pending is None
        ):
            with self._timed("count_reservations"), self._translate_errors(
                "count_reservations"
            ):
                redis_client = await self._ensure_connected()
                return int(
                    await redis_client.scard(self._confirmed_key(query.date, query.slot))
                )
        return len(await self.list_reservations(query))

    async def create_reservation(
        self,
        user_id: str,
        day: date,
        slot: Slot,
        capacity: int | None = None,
    ) -> Reservation:
        now = datetime.now(timezone.utc)
        reservation = Reservation(
            id=str(uuid.uuid4()),
            user_id=user_id,
            date=day,
            slot=slot,
            status=ReservationStatus.CONFIRMED,
            created_at=now,
            updated_at=now,
        )
        keys = self._reservation_keys(reservation)

        with self._timed("create_reservation"), self._translate_errors(
            "create_reservation"
        ):
            redis_client = await self._ensure_connected()
            result = await self._evalsha_with_reload(
                redis_client,
                "create_reservation",
                len(keys),
                *keys,
                reservation.id,
                user_id,
                day.isoformat(),
                slot.value,
                now.isoformat(),
                -1 if capacity is None else capacity,
            )

        key = slot_key(day, slot)
        if int(result[0]) == 1:
            logger.debug(f"Redis store: created reservation {reservation.id} for {key}")
            return reservation
        if result[1] == "DUPLICATE":
            raise UniqueConstraintError(user_id, key)
        if result[1] == "FULL":
            raise CapacityExceededError(key, capacity if capacity is not None else 0)
        raise StoreOperationError(f"Unexpected create_reservation result: {result}")

    async def update_reservation(
        self,
        reservation_id: str,
        status: ReservationStatus | None = None,
        reminder_sent_at: datetime | None = None,
    ) -> Reservation | None:
        current = await self.get_reservation(reservation_id)
        if current is None:
            return None

        # user, date and slot never change, so keys derived from this read stay valid
        with self._timed("update_reservation"), self._translate_errors(
            "update_reservation"
        ):
            redis_client = await self._ensure_connected()
            result = await self._evalsha_with_reload(
                redis_client,
                "transition_reservation",
                3,
                self._reservation_key(reservation_id),
                self._active_key(current.user_id, current.date, current.slot),
                self._confirmed_key(current.date, current.slot),
                reservation_id,
                status.value if status is not None else "",
                reminder_sent_at.isoformat() if reminder_sent_at is not None else "",
                datetime.now(timezone.utc).isoformat(),
            )

        if int(result[0]) == 0:
            if result[1] == "NOT_FOUND":
                return None
            raise StoreOperationError(
                f"Reservation {reservation_id} is {result[2]} and cannot move to "
                f"{status.value if status else 'another status'}"
            )
        return await self.get_reservation(reservation_id)

    async def delete_reservation(self, reservation_id: str) -> bool:
        current = await self.get_reservation(reservation_id)
        if current is None:
            return False
        keys = self._reservation_keys(current)

        with self._timed("delete_reservation"), self._translate_errors(
            "delete_reservation"
        ):
            redis_client = await self._ensure_connected()
            removed = await self._evalsha_with_reload(
                redis_client, "delete_reservation", len(keys), *keys, reservation_id
            )
        return int(removed) == 1

    # === Maintenance ===

    async def health_check(self) -> HealthCheckResult:
        """Perform health check on the store."""
        try:
            redis_client = await self._ensure_connected()
            await redis_client.ping()
            reservations = await redis_client.scard(self._all_reservations_key())
            users = await redis_client.scard(self._users_key())
            return HealthCheckResult(
                healthy=True,
                backend_type=self.backend_type,
                namespace=self.namespace,
                metadata={
                    "redis_url": self.redis_url,
                    "connected": self._connected,
                    "users_count": int(users),
                    "reservations_count": int(reservations),
                },
            )
        except (StoreConnectionError, RedisError, OSError) as e:
            return HealthCheckResult(
                healthy=False,
                backend_type=self.backend_type,
                namespace=self.namespace,
                error=str(e),
            )

    async def clear(self) -> None:
        """Delete every key in the namespace.

        Uses SCAN instead of KEYS so a large keyspace does not block Redis.
        """
        with self._translate_errors("clear"):
            redis_client = await self._ensure_connected()
            pattern = f"{self.key_prefix}:*"
            keys_to_delete: list[str] = []
            async for key in redis_client.scan_iter(match=pattern, count=100):
                keys_to_delete.append(key)
                if len(keys_to_delete) >= 100:
                    await redis_client.delete(*keys_to_delete)
                    keys_to_delete = []
            if keys_to_delete:
                await redis_client.delete(*keys_to_delete)
        logger.debug(f"Cleared Redis namespace {self.namespace}")

    async def start(self) -> None:
        await self._ensure_connected()

    async def cleanup(self) -> None:
        """Close the connection pool if this store created it."""
        await self.stop()
        if self._redis is not None and self._owned_redis:
            try:
                await self._cleanup_connection(
                    self._event_loop_id or 0, self._redis, timeout=2.5
                )
            finally:
                self._redis = None
                self._event_loop_id = None
                self._connected = False

    async def __aenter__(self) -> "RedisStore":
        await self.start()
        return self


__all__ = ["RedisStore"]

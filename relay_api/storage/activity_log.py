"""Activity log storage: append-only audit trail, newest first."""

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from itertools import islice

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from redis.asyncio import Redis
from redis.exceptions import RedisError

from relay_api.errors import PersistenceError

logger = structlog.get_logger()


class ActivityLogType(str, Enum):
    """Activity log entry type."""

    WEBHOOK = "webhook"
    BUY_ORDER = "buy_order"
    SELL_ORDER = "sell_order"
    ERROR = "error"
    SYSTEM = "system"


class ActivityLogCreate(BaseModel):
    """Data for a new activity log entry."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: ActivityLogType
    message: str
    details: str | None = None
    timestamp: datetime | None = None
    ip_address: str | None = None
    order_data: str | None = None
    order_id: str | None = None
    error_code: str | None = None


class ActivityLogEntry(BaseModel):
    """Stored activity log entry. Immutable once created."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    type: ActivityLogType
    message: str
    details: str | None = None
    timestamp: datetime
    ip_address: str | None = None
    order_data: str | None = None
    order_id: str | None = None
    error_code: str | None = None
    created_at: datetime = Field(description="When the entry was stored")


def _build_entry(entry_id: int, data: ActivityLogCreate) -> ActivityLogEntry:
    created_at = datetime.now(timezone.utc)
    return ActivityLogEntry(
        id=entry_id,
        type=data.type,
        message=data.message,
        details=data.details,
        timestamp=data.timestamp or created_at,
        ip_address=data.ip_address,
        order_data=data.order_data,
        order_id=data.order_id,
        error_code=data.error_code,
        created_at=created_at,
    )


def _type_value(log_type: ActivityLogType | str | None) -> str | None:
    if log_type is None:
        return None
    return log_type.value if isinstance(log_type, ActivityLogType) else str(log_type)


class ActivityLogStore(ABC):
    """Abstract activity log store."""

    async def initialize(self) -> None:
        """Prepare backing storage. No-op by default."""

    @abstractmethod
    async def append(self, entry: ActivityLogCreate) -> ActivityLogEntry:
        """Store an entry, assigning its id and creation time.

        Raises:
            PersistenceError: If a durable backend fails to write
        """
        pass

    @abstractmethod
    async def query(
        self,
        limit: int = 100,
        log_type: ActivityLogType | str | None = None,
    ) -> list[ActivityLogEntry]:
        """Return up to ``limit`` most recent entries, newest first.

        Args:
            limit: Maximum number of entries
            log_type: Optional exact type filter
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Discard all entries."""
        pass


class InMemoryActivityLogStore(ActivityLogStore):
    """Process-local activity log. Ids keep increasing across clear()."""

    def __init__(self) -> None:
        self._entries: deque[ActivityLogEntry] = deque()
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def append(self, entry: ActivityLogCreate) -> ActivityLogEntry:
        async with self._lock:
            stored = _build_entry(self._next_id, entry)
            self._next_id += 1
            self._entries.appendleft(stored)
        return stored

    async def query(
        self,
        limit: int = 100,
        log_type: ActivityLogType | str | None = None,
    ) -> list[ActivityLogEntry]:
        if limit <= 0:
            return []
        wanted = _type_value(log_type)
        entries = (e for e in self._entries if wanted is None or e.type.value == wanted)
        return list(islice(entries, limit))

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()


class RedisActivityLogStore(ActivityLogStore):
    """Activity log persisted in Redis sorted sets scored by entry id."""

    def __init__(self, redis_client: Redis, key_prefix: str = "relay"):
        """
        Initialize the store with a Redis client.

        Args:
            redis_client: Redis client
            key_prefix: Namespace for all keys written by this store
        """
        self.redis = redis_client
        self.entries_key = f"{key_prefix}:activity_logs"
        self.id_key = f"{key_prefix}:activity_logs:next_id"
        self.type_key_prefix = f"{key_prefix}:activity_logs:type:"

    def _type_key(self, log_type: str) -> str:
        return f"{self.type_key_prefix}{log_type}"

    async def append(self, entry: ActivityLogCreate) -> ActivityLogEntry:
        try:
            entry_id = int(await self.redis.incr(self.id_key))
            stored = _build_entry(entry_id, entry)
            member = stored.model_dump_json()

            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.zadd(self.entries_key, {member: entry_id})
                pipe.zadd(self._type_key(stored.type.value), {member: entry_id})
                await pipe.execute()
        except RedisError as e:
            logger.error("Failed to persist activity log entry", error=str(e))
            raise PersistenceError(f"Failed to persist activity log entry: {e}") from e

        return stored

    async def query(
        self,
        limit: int = 100,
        log_type: ActivityLogType | str | None = None,
    ) -> list[ActivityLogEntry]:
        if limit <= 0:
            return []
        wanted = _type_value(log_type)
        key = self.entries_key if wanted is None else self._type_key(wanted)
        try:
            members = await self.redis.zrevrange(key, 0, limit - 1)
        except RedisError as e:
            raise PersistenceError(f"Failed to read activity log: {e}") from e
        return [ActivityLogEntry.model_validate_json(m) for m in members]

    async def clear(self) -> None:
        keys = [self.entries_key] + [self._type_key(t.value) for t in ActivityLogType]
        try:
            await self.redis.delete(*keys)
        except RedisError as e:
            raise PersistenceError(f"Failed to clear activity log: {e}") from e
        logger.info("Activity log cleared")

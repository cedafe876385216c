"""Global trading configuration and per-symbol trading pair overrides."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from relay_api.errors import ConflictError, NotFoundError, PersistenceError, ValidationError

logger = structlog.get_logger()

STRATEGY_FIELDS = (
    "enable_adx_filter",
    "adx_threshold",
    "enable_volume_filter",
    "stop_loss_percent",
    "take_profit_percent",
    "trailing_stop_percent",
    "enable_trailing_stop",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrategySettings(_CamelModel):
    """Strategy and risk parameters attached to order log entries."""

    enable_adx_filter: bool = True
    adx_threshold: int = Field(default=20, ge=5, le=50)
    enable_volume_filter: bool = True
    stop_loss_percent: Decimal = Field(default=Decimal("2.0"), ge=0)
    take_profit_percent: Decimal = Field(default=Decimal("3.0"), ge=0)
    trailing_stop_percent: Decimal = Field(default=Decimal("1.5"), ge=0)
    enable_trailing_stop: bool = True


class Configuration(StrategySettings):
    """Global trading configuration (singleton)."""

    trading_pair: str = "BTC-USD"
    order_size: Decimal = Field(default=Decimal("0.01"), gt=0)
    webhook_endpoint: str = "/webhook"
    test_mode: bool = True
    updated_at: datetime = Field(default_factory=_utcnow)

    def strategy(self) -> StrategySettings:
        """Strategy-specific subset of this configuration."""
        return StrategySettings(**{name: getattr(self, name) for name in STRATEGY_FIELDS})


class TradingPairCreate(_CamelModel):
    """Data for a new trading pair. Immutable; updates build a new instance."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    symbol: str = Field(min_length=1)
    name: str = Field(min_length=1)
    status: bool = True
    order_size: Decimal = Field(gt=0)
    stop_loss_percent: Decimal = Field(default=Decimal("2.0"), ge=0)
    take_profit_percent: Decimal = Field(default=Decimal("3.0"), ge=0)


class TradingPair(TradingPairCreate):
    """Stored trading pair, keyed by symbol."""

    id: int
    created_at: datetime


DEFAULT_TRADING_PAIRS = [
    TradingPairCreate(symbol="BTC-USD", name="Bitcoin", order_size=Decimal("0.01")),
    TradingPairCreate(
        symbol="ETH-USD",
        name="Ethereum",
        order_size=Decimal("0.1"),
        stop_loss_percent=Decimal("2.5"),
        take_profit_percent=Decimal("4.0"),
    ),
    TradingPairCreate(
        symbol="SOL-USD",
        name="Solana",
        order_size=Decimal("1.0"),
        stop_loss_percent=Decimal("3.0"),
        take_profit_percent=Decimal("5.0"),
    ),
    TradingPairCreate(
        symbol="DOGE-USD",
        name="Dogecoin",
        order_size=Decimal("100"),
        stop_loss_percent=Decimal("4.0"),
        take_profit_percent=Decimal("6.0"),
    ),
    TradingPairCreate(
        symbol="AIOC-USD",
        name="AI Open Compute",
        order_size=Decimal("50"),
        stop_loss_percent=Decimal("2.5"),
        take_profit_percent=Decimal("5.0"),
    ),
]


def known_fields(
    model_cls: type[BaseModel],
    partial: dict[str, Any],
    exclude: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Keep only model fields (by name or camelCase alias), keyed by field name."""
    lookup: dict[str, str] = {}
    for name, field in model_cls.model_fields.items():
        if name in exclude:
            continue
        lookup[name] = name
        if field.alias:
            lookup[field.alias] = name
    return {lookup[k]: v for k, v in partial.items() if k in lookup}


def merge_configuration(current: Configuration, partial: dict[str, Any]) -> Configuration:
    """Shallow-merge a partial update onto the configuration.

    Unknown fields are ignored; ``updated_at`` is always refreshed.

    Raises:
        ValidationError: If a supplied value is invalid
    """
    updates = known_fields(Configuration, partial, exclude=frozenset({"updated_at"}))
    try:
        return Configuration.model_validate(
            {**current.model_dump(), **updates, "updated_at": _utcnow()}
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid configuration: {e}") from e


def merge_trading_pair(current: TradingPair, partial: dict[str, Any]) -> TradingPair:
    """Merge a partial update onto a trading pair, keeping id/symbol/created_at.

    Raises:
        ValidationError: If a supplied value is invalid
    """
    updates = known_fields(
        TradingPair, partial, exclude=frozenset({"id", "symbol", "created_at"})
    )
    try:
        return TradingPair.model_validate({**current.model_dump(), **updates})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid trading pair: {e}") from e


class ConfigurationStore(ABC):
    """Abstract store for the configuration singleton and trading pairs."""

    async def initialize(self) -> None:
        """Prepare backing storage. No-op by default."""

    @abstractmethod
    async def get(self) -> Configuration:
        """Return the current configuration (baseline defaults if never set)."""
        pass

    @abstractmethod
    async def update(self, partial: dict[str, Any]) -> Configuration:
        """Merge a partial update and return the result."""
        pass

    @abstractmethod
    async def list_trading_pairs(self) -> list[TradingPair]:
        """List all trading pairs."""
        pass

    @abstractmethod
    async def get_trading_pair(self, symbol: str) -> TradingPair | None:
        """Get a trading pair by symbol, or None."""
        pass

    @abstractmethod
    async def create_trading_pair(self, data: TradingPairCreate) -> TradingPair:
        """Create a trading pair.

        Raises:
            ConflictError: If the symbol already exists
        """
        pass

    @abstractmethod
    async def update_trading_pair(self, symbol: str, partial: dict[str, Any]) -> TradingPair:
        """Update a trading pair.

        Raises:
            NotFoundError: If the symbol does not exist
        """
        pass

    @abstractmethod
    async def delete_trading_pair(self, symbol: str) -> None:
        """Delete a trading pair.

        Raises:
            NotFoundError: If the symbol does not exist
        """
        pass


class InMemoryConfigurationStore(ConfigurationStore):
    """Process-local configuration store."""

    def __init__(
        self,
        configuration: Configuration | None = None,
        seed_defaults: bool = True,
    ) -> None:
        self._configuration = configuration or Configuration()
        self._pairs: dict[str, TradingPair] = {}
        self._next_pair_id = 1
        if seed_defaults:
            for data in DEFAULT_TRADING_PAIRS:
                self._insert(data)

    def _insert(self, data: TradingPairCreate) -> TradingPair:
        pair = TradingPair(**data.model_dump(), id=self._next_pair_id, created_at=_utcnow())
        self._next_pair_id += 1
        self._pairs[pair.symbol] = pair
        return pair

    async def get(self) -> Configuration:
        return self._configuration.model_copy()

    async def update(self, partial: dict[str, Any]) -> Configuration:
        self._configuration = merge_configuration(self._configuration, partial)
        return self._configuration.model_copy()

    async def list_trading_pairs(self) -> list[TradingPair]:
        return list(self._pairs.values())

    async def get_trading_pair(self, symbol: str) -> TradingPair | None:
        return self._pairs.get(symbol)

    async def create_trading_pair(self, data: TradingPairCreate) -> TradingPair:
        if data.symbol in self._pairs:
            raise ConflictError(f"Trading pair {data.symbol} already exists")
        return self._insert(data)

    async def update_trading_pair(self, symbol: str, partial: dict[str, Any]) -> TradingPair:
        pair = self._pairs.get(symbol)
        if pair is None:
            raise NotFoundError(f"Trading pair {symbol} not found")
        updated = merge_trading_pair(pair, partial)
        self._pairs[symbol] = updated
        return updated

    async def delete_trading_pair(self, symbol: str) -> None:
        if symbol not in self._pairs:
            raise NotFoundError(f"Trading pair {symbol} not found")
        del self._pairs[symbol]


class RedisConfigurationStore(ConfigurationStore):
    """Configuration and trading pairs persisted in Redis.

    The configuration is one JSON document; trading pairs live in a hash keyed
    by symbol. Concurrent configuration updates are last-write-wins.
    """

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: str = "relay",
        seed_defaults: bool = True,
    ):
        """
        Initialize the store with a Redis client.

        Args:
            redis_client: Redis client
            key_prefix: Namespace for all keys written by this store
            seed_defaults: Create the default trading pairs on initialize()
        """
        self.redis = redis_client
        self.seed_defaults = seed_defaults
        self.config_key = f"{key_prefix}:configuration"
        self.pairs_key = f"{key_prefix}:trading_pairs"
        self.pair_id_key = f"{key_prefix}:trading_pairs:next_id"

    async def initialize(self) -> None:
        if not self.seed_defaults:
            return
        for data in DEFAULT_TRADING_PAIRS:
            try:
                await self.create_trading_pair(data)
            except ConflictError:
                logger.debug("Default trading pair already present", symbol=data.symbol)

    async def get(self) -> Configuration:
        try:
            raw = await self.redis.get(self.config_key)
        except RedisError as e:
            raise PersistenceError(f"Failed to read configuration: {e}") from e
        if raw is None:
            return Configuration()
        return Configuration.model_validate_json(raw)

    async def update(self, partial: dict[str, Any]) -> Configuration:
        updated = merge_configuration(await self.get(), partial)
        try:
            await self.redis.set(self.config_key, updated.model_dump_json())
        except RedisError as e:
            raise PersistenceError(f"Failed to write configuration: {e}") from e
        return updated

    async def list_trading_pairs(self) -> list[TradingPair]:
        try:
            raw = await self.redis.hgetall(self.pairs_key)
        except RedisError as e:
            raise PersistenceError(f"Failed to read trading pairs: {e}") from e
        pairs = [TradingPair.model_validate_json(v) for v in raw.values()]
        return sorted(pairs, key=lambda p: p.id)

    async def get_trading_pair(self, symbol: str) -> TradingPair | None:
        try:
            raw = await self.redis.hget(self.pairs_key, symbol)
        except RedisError as e:
            raise PersistenceError(f"Failed to read trading pair {symbol}: {e}") from e
        if raw is None:
            return None
        return TradingPair.model_validate_json(raw)

    async def create_trading_pair(self, data: TradingPairCreate) -> TradingPair:
        try:
            if await self.redis.hexists(self.pairs_key, data.symbol):
                raise ConflictError(f"Trading pair {data.symbol} already exists")
            pair_id = int(await self.redis.incr(self.pair_id_key))
            pair = TradingPair(**data.model_dump(), id=pair_id, created_at=_utcnow())
            created = await self.redis.hsetnx(self.pairs_key, pair.symbol, pair.model_dump_json())
        except RedisError as e:
            raise PersistenceError(f"Failed to create trading pair {data.symbol}: {e}") from e
        if not created:
            raise ConflictError(f"Trading pair {data.symbol} already exists")
        return pair

    async def update_trading_pair(self, symbol: str, partial: dict[str, Any]) -> TradingPair:
        """Read-merge-write under WATCH so a concurrent delete is never undone."""
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(self.pairs_key)
                        raw = await pipe.hget(self.pairs_key, symbol)
                        if raw is None:
                            raise NotFoundError(f"Trading pair {symbol} not found")
                        updated = merge_trading_pair(TradingPair.model_validate_json(raw), partial)

                        pipe.multi()
                        pipe.hset(self.pairs_key, symbol, updated.model_dump_json())
                        await pipe.execute()
                        return updated
                    except WatchError:
                        logger.debug("Trading pair changed during update, retrying", symbol=symbol)
                        continue
        except RedisError as e:
            raise PersistenceError(f"Failed to update trading pair {symbol}: {e}") from e

    async def delete_trading_pair(self, symbol: str) -> None:
        try:
            removed = await self.redis.hdel(self.pairs_key, symbol)
        except RedisError as e:
            raise PersistenceError(f"Failed to delete trading pair {symbol}: {e}") from e
        if not removed:
            raise NotFoundError(f"Trading pair {symbol} not found")

"""Tests for configuration and trading pair storage."""

from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from relay_api.errors import ConflictError, NotFoundError, ValidationError
from relay_api.storage.configuration import (
    DEFAULT_TRADING_PAIRS,
    Configuration,
    InMemoryConfigurationStore,
    RedisConfigurationStore,
    StrategySettings,
    TradingPairCreate,
    known_fields,
)


def eth_pair(**overrides):
    data = {"symbol": "ETH-USD", "name": "Ethereum", "order_size": Decimal("0.1")}
    data.update(overrides)
    return TradingPairCreate(**data)


class TestConfiguration:
    """Test configuration defaults and merging."""

    @pytest.mark.asyncio
    async def test_baseline_defaults(self, config_store):
        """A fresh store returns the baseline configuration."""
        config = await config_store.get()

        assert config.trading_pair == "BTC-USD"
        assert config.order_size == Decimal("0.01")
        assert config.test_mode is True
        assert config.adx_threshold == 20
        assert config.trailing_stop_percent == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_partial_update_merges(self, config_store):
        """Only supplied fields change; camelCase and snake_case both work."""
        updated = await config_store.update({"orderSize": "0.05", "test_mode": False})

        assert updated.order_size == Decimal("0.05")
        assert updated.test_mode is False
        assert updated.trading_pair == "BTC-USD"
        assert (await config_store.get()).order_size == Decimal("0.05")

    @pytest.mark.asyncio
    async def test_unknown_fields_ignored(self, config_store):
        """Unknown keys are dropped silently."""
        updated = await config_store.update({"leverage": 100, "adxThreshold": 30})

        assert updated.adx_threshold == 30
        assert not hasattr(updated, "leverage")

    @pytest.mark.asyncio
    async def test_updated_at_refreshed(self, config_store):
        """Every update refreshes updated_at, even a client-supplied one is ignored."""
        before = await config_store.get()

        updated = await config_store.update({"updatedAt": "2000-01-01T00:00:00Z"})

        assert updated.updated_at >= before.updated_at
        assert updated.updated_at.year != 2000

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "partial",
        [{"adxThreshold": 4}, {"adxThreshold": 51}, {"orderSize": 0}, {"testMode": "maybe"}],
    )
    async def test_invalid_values_rejected(self, config_store, partial):
        """Out-of-range values raise and leave the stored configuration unchanged."""
        with pytest.raises(ValidationError):
            await config_store.update(partial)

        config = await config_store.get()
        assert config.adx_threshold == 20
        assert config.order_size == Decimal("0.01")

    def test_strategy_subset(self):
        """strategy() exposes exactly the strategy fields."""
        config = Configuration(adx_threshold=35, enable_volume_filter=False)

        strategy = config.strategy()

        assert isinstance(strategy, StrategySettings)
        assert strategy.adx_threshold == 35
        assert strategy.enable_volume_filter is False
        assert "tradingPair" not in strategy.model_dump(by_alias=True)

    def test_known_fields(self):
        """Aliases map back to field names; excluded fields are dropped."""
        result = known_fields(
            Configuration,
            {"stopLossPercent": 1, "updatedAt": "x", "bogus": 1},
            exclude=frozenset({"updated_at"}),
        )

        assert result == {"stop_loss_percent": 1}


class TestTradingPairs:
    """Test trading pair CRUD."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, config_store):
        """Created pairs get an id and creation time."""
        pair = await config_store.create_trading_pair(eth_pair())

        assert pair.id >= 1
        assert pair.created_at is not None
        assert await config_store.get_trading_pair("ETH-USD") == pair
        assert await config_store.get_trading_pair("XYZ-USD") is None

    @pytest.mark.asyncio
    async def test_duplicate_symbol_conflicts(self, config_store):
        """Symbols are unique."""
        await config_store.create_trading_pair(eth_pair())

        with pytest.raises(ConflictError):
            await config_store.create_trading_pair(eth_pair(name="Ether again"))

        assert len(await config_store.list_trading_pairs()) == 1

    @pytest.mark.asyncio
    async def test_update_keeps_identity(self, config_store):
        """id, symbol and createdAt cannot be changed by an update."""
        original = await config_store.create_trading_pair(eth_pair())

        updated = await config_store.update_trading_pair(
            "ETH-USD",
            {"symbol": "BTC-USD", "id": 99, "createdAt": "2000-01-01T00:00:00Z", "status": False},
        )

        assert updated.symbol == "ETH-USD"
        assert updated.id == original.id
        assert updated.created_at == original.created_at
        assert updated.status is False

    @pytest.mark.asyncio
    async def test_update_invalid_value(self, config_store):
        """Invalid pair values are rejected."""
        await config_store.create_trading_pair(eth_pair())

        with pytest.raises(ValidationError):
            await config_store.update_trading_pair("ETH-USD", {"orderSize": -1})

    @pytest.mark.asyncio
    async def test_update_missing(self, config_store):
        """Updating an unknown symbol raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await config_store.update_trading_pair("XYZ-USD", {"status": False})

    @pytest.mark.asyncio
    async def test_delete(self, config_store):
        """Deleted pairs disappear; deleting twice raises NotFoundError."""
        await config_store.create_trading_pair(eth_pair())

        await config_store.delete_trading_pair("ETH-USD")

        assert await config_store.get_trading_pair("ETH-USD") is None
        with pytest.raises(NotFoundError):
            await config_store.delete_trading_pair("ETH-USD")

    @pytest.mark.asyncio
    async def test_returned_pairs_cannot_edit_store(self, config_store):
        """Pairs handed out by the store are immutable."""
        await config_store.create_trading_pair(eth_pair())
        pair = await config_store.get_trading_pair("ETH-USD")

        with pytest.raises(PydanticValidationError):
            pair.order_size = Decimal("999")
        with pytest.raises(PydanticValidationError):
            (await config_store.list_trading_pairs())[0].status = False

        stored = await config_store.get_trading_pair("ETH-USD")
        assert stored.order_size == Decimal("0.1")
        assert stored.status is True

    @pytest.mark.asyncio
    async def test_seeded_defaults(self):
        """Default pairs are seeded when requested."""
        store = InMemoryConfigurationStore()

        pairs = await store.list_trading_pairs()

        assert [p.symbol for p in pairs] == [p.symbol for p in DEFAULT_TRADING_PAIRS]
        doge = await store.get_trading_pair("DOGE-USD")
        assert doge.order_size == Decimal("100")
        assert doge.take_profit_percent == Decimal("6.0")


class TestRedisConfigurationStore:
    """Test the Redis-backed configuration store (requires a local Redis)."""

    @pytest_asyncio.fixture
    async def store(self):
        """Store under a throwaway key prefix."""
        redis = Redis(host="localhost", port=6379, decode_responses=True)
        try:
            await redis.ping()
        except (RedisError, OSError):
            await redis.aclose()
            pytest.skip("Redis is not available")

        store = RedisConfigurationStore(redis, key_prefix=f"relay-test-{uuid4().hex}")
        yield store
        await redis.delete(store.config_key, store.pairs_key, store.pair_id_key)
        await redis.aclose()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, store):
        """Seeding twice does not duplicate pairs."""
        await store.initialize()
        await store.initialize()

        pairs = await store.list_trading_pairs()

        assert [p.symbol for p in pairs] == [p.symbol for p in DEFAULT_TRADING_PAIRS]

    @pytest.mark.asyncio
    async def test_configuration_round_trip(self, store):
        """Updates persist and defaults apply when nothing is stored."""
        assert (await store.get()).trading_pair == "BTC-USD"

        await store.update({"tradingPair": "SOL-USD", "orderSize": "2"})

        config = await store.get()
        assert config.trading_pair == "SOL-USD"
        assert config.order_size == Decimal("2")

    @pytest.mark.asyncio
    async def test_trading_pair_lifecycle(self, store):
        """Create, conflict, update and delete against Redis."""
        await store.create_trading_pair(eth_pair())
        with pytest.raises(ConflictError):
            await store.create_trading_pair(eth_pair())

        updated = await store.update_trading_pair("ETH-USD", {"orderSize": "0.2"})
        assert updated.order_size == Decimal("0.2")

        await store.delete_trading_pair("ETH-USD")
        with pytest.raises(NotFoundError):
            await store.delete_trading_pair("ETH-USD")

    @pytest.mark.asyncio
    async def test_update_after_delete_does_not_resurrect(self, store):
        """Updating a deleted pair fails and leaves it deleted."""
        await store.create_trading_pair(eth_pair())
        await store.delete_trading_pair("ETH-USD")

        with pytest.raises(NotFoundError):
            await store.update_trading_pair("ETH-USD", {"status": False})

        assert await store.get_trading_pair("ETH-USD") is None
        assert await store.list_trading_pairs() == []

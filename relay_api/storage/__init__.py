"""Activity log and configuration stores."""

from relay_api.storage.activity_log import (
    ActivityLogCreate,
    ActivityLogEntry,
    ActivityLogStore,
    ActivityLogType,
    InMemoryActivityLogStore,
    RedisActivityLogStore,
)
from relay_api.storage.configuration import (
    DEFAULT_TRADING_PAIRS,
    STRATEGY_FIELDS,
    Configuration,
    ConfigurationStore,
    InMemoryConfigurationStore,
    RedisConfigurationStore,
    StrategySettings,
    TradingPair,
    TradingPairCreate,
)

__all__ = [
    "ActivityLogCreate",
    "ActivityLogEntry",
    "ActivityLogStore",
    "ActivityLogType",
    "Configuration",
    "ConfigurationStore",
    "DEFAULT_TRADING_PAIRS",
    "InMemoryActivityLogStore",
    "InMemoryConfigurationStore",
    "RedisActivityLogStore",
    "RedisConfigurationStore",
    "STRATEGY_FIELDS",
    "StrategySettings",
    "TradingPair",
    "TradingPairCreate",
]

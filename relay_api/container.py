"""Service container: builds and owns the relay's collaborators.

One container is created per application instance and stored on
``app.state``; nothing here is a process-wide singleton, so tests can build
isolated containers with in-memory stores and fake exchanges.
"""

from dataclasses import dataclass, field

import structlog
from redis.asyncio import Redis

from relay_api.config import Settings
from relay_api.exchange.client import CoinbaseClient
from relay_api.exchange.credentials import CredentialProvider
from relay_api.exchange.signing import build_signer
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.activity_log import (
    ActivityLogStore,
    InMemoryActivityLogStore,
    RedisActivityLogStore,
)
from relay_api.storage.configuration import (
    ConfigurationStore,
    InMemoryConfigurationStore,
    RedisConfigurationStore,
)
from relay_api.webhook.orchestrator import WebhookOrchestrator

logger = structlog.get_logger()


@dataclass
class ServiceContainer:
    """Wired application services."""

    settings: Settings
    config_store: ConfigurationStore
    log_store: ActivityLogStore
    activity: ActivityLogger
    exchange: CoinbaseClient
    orchestrator: WebhookOrchestrator
    redis: Redis | None = field(default=None)

    async def startup(self) -> None:
        """Initialize backing stores."""
        await self.config_store.initialize()
        await self.log_store.initialize()

    async def shutdown(self) -> None:
        """Release network resources."""
        await self.exchange.aclose()
        if self.redis is not None:
            await self.redis.aclose()


def build_exchange_client(settings: Settings) -> CoinbaseClient:
    """Create the Coinbase client with the configured signing strategy."""
    credentials = CredentialProvider(
        key_name=settings.coinbase_api_key_name,
        private_key=settings.coinbase_api_private_key,
        key_file=settings.coinbase_key_file,
    )
    return CoinbaseClient(
        credentials=credentials,
        signer=build_signer(settings.signing_mode),
        base_url=settings.coinbase_api_url,
        timeout=settings.exchange_timeout_seconds,
    )


def build_container(
    settings: Settings,
    config_store: ConfigurationStore | None = None,
    log_store: ActivityLogStore | None = None,
    exchange: CoinbaseClient | None = None,
) -> ServiceContainer:
    """Wire services from settings; explicit arguments override the defaults.

    Args:
        settings: Application settings
        config_store: Optional pre-built configuration store
        log_store: Optional pre-built activity log store
        exchange: Optional pre-built exchange client

    Returns:
        ServiceContainer ready for startup()
    """
    redis: Redis | None = None
    if settings.storage_backend == "redis" and (config_store is None or log_store is None):
        redis = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password.get_secret_value() if settings.redis_password else None,
            decode_responses=True,
            socket_connect_timeout=5,
        )

    if config_store is None:
        if redis is not None:
            config_store = RedisConfigurationStore(
                redis,
                key_prefix=settings.redis_key_prefix,
                seed_defaults=settings.seed_default_trading_pairs,
            )
        else:
            config_store = InMemoryConfigurationStore(
                seed_defaults=settings.seed_default_trading_pairs
            )

    if log_store is None:
        if redis is not None:
            log_store = RedisActivityLogStore(redis, key_prefix=settings.redis_key_prefix)
        else:
            log_store = InMemoryActivityLogStore()

    activity = ActivityLogger(log_store)
    exchange = exchange or build_exchange_client(settings)
    orchestrator = WebhookOrchestrator(config_store, activity, exchange)

    logger.info(
        "Service container built",
        storage_backend=settings.storage_backend,
        signing_mode=settings.signing_mode,
    )

    return ServiceContainer(
        settings=settings,
        config_store=config_store,
        log_store=log_store,
        activity=activity,
        exchange=exchange,
        orchestrator=orchestrator,
        redis=redis,
    )

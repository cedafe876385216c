"""Shared fixtures for relay tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from relay_api.config import Settings
from relay_api.container import build_container
from relay_api.exchange.client import CoinbaseClient, OrderResponse
from relay_api.main import create_app
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.activity_log import InMemoryActivityLogStore
from relay_api.storage.configuration import InMemoryConfigurationStore
from relay_api.webhook.orchestrator import WebhookOrchestrator


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        coinbase_api_key_name="organizations/test-org/apiKeys/test-key",
        coinbase_api_private_key="not-a-real-key",
        signing_mode="placeholder",
        storage_backend="memory",
        seed_default_trading_pairs=False,
    )


@pytest.fixture
def config_store():
    """Empty in-memory configuration store with baseline configuration."""
    return InMemoryConfigurationStore(seed_defaults=False)


@pytest.fixture
def log_store():
    """Empty in-memory activity log."""
    return InMemoryActivityLogStore()


@pytest.fixture
def activity(log_store):
    """Activity logger writing to the in-memory log."""
    return ActivityLogger(log_store)


@pytest.fixture
def fake_exchange():
    """Exchange client double that accepts every order."""
    exchange = AsyncMock(spec=CoinbaseClient)
    exchange.execute_market_order.return_value = OrderResponse(
        success=True,
        order_id="cb-order-1",
        product_id="BTC-USD",
        side="BUY",
        client_order_id="order-test",
    )
    exchange.test_connection.return_value = True
    return exchange


@pytest.fixture
def orchestrator(config_store, activity, fake_exchange):
    """Orchestrator wired to in-memory stores and the fake exchange."""
    return WebhookOrchestrator(config_store, activity, fake_exchange)


@pytest.fixture
def container(settings, config_store, log_store, fake_exchange):
    """Service container with in-memory stores and the fake exchange."""
    return build_container(
        settings,
        config_store=config_store,
        log_store=log_store,
        exchange=fake_exchange,
    )


@pytest.fixture
def client(container):
    """Test client (lifespan not started, so the log starts empty)."""
    return TestClient(create_app(container=container))

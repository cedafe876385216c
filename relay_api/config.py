"""Configuration management for the Webhook Order Relay."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Webhook Order Relay"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Coinbase credentials (environment first, key file second)
    coinbase_api_key_name: str | None = None
    coinbase_api_private_key: SecretStr | None = None
    coinbase_key_file: str = "attached_assets/cdp_api_key.json"

    # Coinbase API
    coinbase_api_url: str = "https://api.coinbase.com"
    exchange_timeout_seconds: float = Field(default=10.0, gt=0)

    # Non-production switches
    signing_mode: Literal["private_key", "placeholder"] = "private_key"
    simulate_exchange_connection: bool = False

    # Storage
    storage_backend: Literal["memory", "redis"] = "memory"
    seed_default_trading_pairs: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_key_prefix: str = "relay"

    # Observability
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_insecure: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

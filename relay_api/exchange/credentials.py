"""Coinbase API credential resolution."""

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, SecretStr

from relay_api.errors import CredentialError

logger = structlog.get_logger()


class ApiCredentials(BaseModel):
    """Coinbase CDP API key identity."""

    key_name: str = Field(description="Full key name, e.g. organizations/{org}/apiKeys/{id}")
    private_key: SecretStr = Field(description="PEM or raw base64 private key")

    @property
    def key_id(self) -> str:
        """Key identifier sent in the CB-ACCESS-KEY header."""
        return self.key_name.rstrip("/").split("/")[-1]


class CredentialProvider:
    """Resolves API credentials from the environment, then from a key file."""

    def __init__(
        self,
        key_name: str | None = None,
        private_key: SecretStr | str | None = None,
        key_file: str | Path | None = None,
    ) -> None:
        """Initialize credential provider.

        Args:
            key_name: API key name taken from the environment
            private_key: Private key taken from the environment
            key_file: Fallback JSON file with ``name`` and ``privateKey``
        """
        if isinstance(private_key, str):
            private_key = SecretStr(private_key)
        self._env_key_name = key_name
        self._env_private_key = private_key
        self._key_file = Path(key_file) if key_file else None
        self._cached: ApiCredentials | None = None

    def get_credentials(self) -> ApiCredentials:
        """Return credentials, resolving and caching them on first use.

        Raises:
            CredentialError: If neither source yields a key pair
        """
        if self._cached is None:
            self._cached = self._resolve()
        return self._cached

    def _resolve(self) -> ApiCredentials:
        if self._env_key_name and self._env_private_key and self._env_private_key.get_secret_value():
            logger.info("Loaded Coinbase credentials from environment")
            return ApiCredentials(key_name=self._env_key_name, private_key=self._env_private_key)

        if self._key_file is None:
            raise CredentialError("Could not load Coinbase API credentials: no key file configured")

        try:
            data = json.loads(self._key_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(
                "Failed to load Coinbase API credentials",
                key_file=str(self._key_file),
                error=str(e),
            )
            raise CredentialError("Could not load Coinbase API credentials") from e

        name = data.get("name") if isinstance(data, dict) else None
        private_key = data.get("privateKey") if isinstance(data, dict) else None
        if not name or not private_key:
            raise CredentialError(
                f"Could not load Coinbase API credentials: {self._key_file} lacks name/privateKey"
            )

        logger.info("Loaded Coinbase credentials from key file", key_file=str(self._key_file))
        return ApiCredentials(key_name=name, private_key=SecretStr(private_key))

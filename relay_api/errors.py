"""Error taxonomy for the order relay.

Every error carries a short ``error_code`` that ends up on ``error`` activity
log entries, so failures can be filtered in the audit trail without parsing
messages.
"""

from typing import Any


class RelayError(Exception):
    """Base class for all relay errors."""

    error_code = "RELAY_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Serializable view used for activity log details."""
        return {"error": type(self).__name__, "message": self.message}


class ValidationError(RelayError):
    """Inbound webhook payload failed schema validation."""

    error_code = "VALIDATION_ERROR"


class ConfigResolutionError(RelayError):
    """Trading pair lookup failed; callers fall back to global configuration."""

    error_code = "CONFIG_RESOLUTION_ERROR"


class CredentialError(RelayError):
    """Exchange API credentials could not be loaded."""

    error_code = "CREDENTIAL_ERROR"


class SignatureError(RelayError):
    """A request signature could not be produced."""

    error_code = "SIGNATURE_ERROR"


class ExchangeError(RelayError):
    """The exchange rejected a request or could not be reached."""

    error_code = "EXCHANGE_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        data["body"] = self.body
        return data


class PersistenceError(RelayError):
    """A durable store failed to read or write."""

    error_code = "PERSISTENCE_ERROR"


class NotFoundError(RelayError):
    """Requested record does not exist."""

    error_code = "NOT_FOUND"


class ConflictError(RelayError):
    """Record already exists."""

    error_code = "CONFLICT"

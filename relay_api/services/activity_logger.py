"""Activity logger: writes audit entries and mirrors them to structlog."""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog
from pydantic import BaseModel

from relay_api.errors import RelayError
from relay_api.safety.redaction import Redactor
from relay_api.storage.activity_log import (
    ActivityLogCreate,
    ActivityLogEntry,
    ActivityLogStore,
    ActivityLogType,
)

logger = structlog.get_logger()


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, BaseException):
        return describe_error(value)
    return str(value)


def describe_error(error: Any) -> Any:
    """Turn an exception into a JSON-friendly mapping."""
    if isinstance(error, RelayError):
        return error.to_dict()
    if isinstance(error, BaseException):
        return {"error": type(error).__name__, "message": str(error)}
    return error


class ActivityLogger:
    """Typed helpers for each activity log entry kind."""

    def __init__(self, store: ActivityLogStore, redactor: Redactor | None = None) -> None:
        self.store = store
        self.redactor = redactor or Redactor()

    def serialize(self, value: Any) -> str | None:
        """JSON-encode a value after masking secrets."""
        if value is None:
            return None
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json", by_alias=True)
        value = self.redactor.redact_value(describe_error(value))
        return json.dumps(value, default=_json_default)

    async def webhook(
        self,
        message: str,
        details: Any,
        ip_address: str | None = None,
    ) -> ActivityLogEntry:
        """Record an inbound webhook request."""
        logger.info(message, activity="webhook", ip_address=ip_address)
        return await self.store.append(
            ActivityLogCreate(
                type=ActivityLogType.WEBHOOK,
                message=message,
                details=self.serialize(details),
                ip_address=ip_address,
            )
        )

    async def buy_order(self, message: str, order_id: str | None, order_data: Any) -> ActivityLogEntry:
        """Record an executed buy order."""
        return await self._order(ActivityLogType.BUY_ORDER, message, order_id, order_data)

    async def sell_order(self, message: str, order_id: str | None, order_data: Any) -> ActivityLogEntry:
        """Record an executed sell order."""
        return await self._order(ActivityLogType.SELL_ORDER, message, order_id, order_data)

    async def _order(
        self,
        log_type: ActivityLogType,
        message: str,
        order_id: str | None,
        order_data: Any,
    ) -> ActivityLogEntry:
        logger.info(message, activity=log_type.value, order_id=order_id)
        return await self.store.append(
            ActivityLogCreate(
                type=log_type,
                message=message,
                details=message,
                order_id=order_id,
                order_data=self.serialize(order_data),
            )
        )

    async def error(
        self,
        message: str,
        error: Any,
        error_code: str | None = None,
    ) -> ActivityLogEntry:
        """Record a failure."""
        if error_code is None and isinstance(error, RelayError):
            error_code = error.error_code
        logger.error(message, activity="error", error_code=error_code, error=str(error))
        return await self.store.append(
            ActivityLogCreate(
                type=ActivityLogType.ERROR,
                message=message,
                details=self.serialize(error),
                error_code=error_code,
            )
        )

    async def system(self, message: str, details: Any = None) -> ActivityLogEntry:
        """Record a system event."""
        logger.info(message, activity="system")
        return await self.store.append(
            ActivityLogCreate(
                type=ActivityLogType.SYSTEM,
                message=message,
                details=self.serialize(details),
            )
        )

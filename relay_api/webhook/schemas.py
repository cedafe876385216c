"""Webhook request and result models."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from relay_api.storage.configuration import TradingPair


class WebhookAction(str, Enum):
    """Trading signal action."""

    BUY = "buy"
    SELL = "sell"


class WebhookPayload(BaseModel):
    """Inbound trading signal.

    ``price``, ``stopLoss`` and ``takeProfit`` are advisory: they are echoed and
    logged but never turned into orders.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)

    action: WebhookAction
    symbol: str | None = Field(default=None, min_length=1)
    amount: float | None = Field(default=None, gt=0)
    price: float | None = None
    stop_loss: float | None = None
    take_profit: float | None = None
    params: dict[str, Any] | None = None
    test_mode: bool | None = None


class ResolvedOrder(BaseModel):
    """Effective parameters for one webhook after merging configuration."""

    symbol: str
    order_size: Decimal
    test_mode: bool
    trading_pair: TradingPair | None = None


@dataclass
class WebhookResult:
    """HTTP-agnostic outcome of handling a webhook."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))

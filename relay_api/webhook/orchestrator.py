"""Webhook-to-order execution path.

Each call to ``WebhookOrchestrator.handle`` is one independent pass:

receive -> validate -> resolve -> (simulate | execute) -> respond

Every pass writes a ``webhook`` activity entry first, and every failure path
writes exactly one ``error`` entry before answering. Repeated deliveries of
the same signal are not deduplicated; each valid live call places one order.
"""

from typing import Any

import structlog
from fastapi import status
from pydantic import ValidationError as PydanticValidationError

from relay_api.decimals import format_decimal, to_decimal
from relay_api.errors import (
    ConfigResolutionError,
    CredentialError,
    ExchangeError,
    SignatureError,
    ValidationError,
)
from relay_api.exchange.client import CoinbaseClient, OrderResponse, OrderSide
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.configuration import Configuration, ConfigurationStore, TradingPair
from relay_api.webhook.schemas import ResolvedOrder, WebhookAction, WebhookPayload, WebhookResult

logger = structlog.get_logger()


def format_validation_error(error: PydanticValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "payload"
        parts.append(f"{location}: {err.get('msg', 'invalid value')}")
    return "Validation error: " + "; ".join(parts)


class WebhookOrchestrator:
    """Turns trading signals into market orders (or simulated ones)."""

    def __init__(
        self,
        config_store: ConfigurationStore,
        activity: ActivityLogger,
        exchange: CoinbaseClient,
    ) -> None:
        """Initialize orchestrator.

        Args:
            config_store: Global configuration and trading pair store
            activity: Activity logger for the audit trail
            exchange: Exchange client used for live orders
        """
        self.config_store = config_store
        self.activity = activity
        self.exchange = exchange

    async def handle(self, raw_payload: Any, ip_address: str | None = None) -> WebhookResult:
        """Process one webhook delivery. Never raises.

        Args:
            raw_payload: Decoded JSON body (or raw text if it was not JSON)
            ip_address: Source address of the caller

        Returns:
            WebhookResult with status code and JSON body
        """
        try:
            await self.activity.webhook("Webhook request received", raw_payload, ip_address)
            payload = self.validate(raw_payload)
            config = await self.config_store.get()
            order = await self.resolve(payload, config)

            if order.test_mode:
                return await self._simulate(payload, order)
            return await self._execute(payload, order, config)

        except ValidationError as e:
            await self._record_failure("Webhook validation error", e)
            return WebhookResult(
                status_code=status.HTTP_400_BAD_REQUEST,
                body={"success": False, "message": "Invalid webhook payload", "error": e.message},
            )
        except (CredentialError, SignatureError, ExchangeError) as e:
            await self._record_failure("Order execution failed", e)
            return WebhookResult(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                body={"success": False, "message": f"Order execution failed: {e.message}"},
            )
        except Exception as e:
            logger.error("Unexpected error processing webhook", error=str(e), exc_info=True)
            await self._record_failure("Error processing webhook", e, error_code="INTERNAL_ERROR")
            return WebhookResult(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                body={"success": False, "message": "Failed to process webhook request"},
            )

    @staticmethod
    def validate(raw_payload: Any) -> WebhookPayload:
        """Parse a raw payload.

        Raises:
            ValidationError: If the payload does not match the schema
        """
        try:
            return WebhookPayload.model_validate(raw_payload)
        except PydanticValidationError as e:
            raise ValidationError(format_validation_error(e)) from e

    async def resolve(self, payload: WebhookPayload, config: Configuration) -> ResolvedOrder:
        """Merge payload, trading pair override and global configuration.

        Trading pair lookup failures fall back to global configuration.
        """
        symbol = payload.symbol or config.trading_pair
        test_mode = payload.test_mode if payload.test_mode is not None else config.test_mode

        try:
            pair = await self._lookup_trading_pair(symbol)
        except ConfigResolutionError as e:
            logger.warning("Falling back to global configuration", symbol=symbol, error=e.message)
            pair = None

        active_pair = pair if pair is not None and pair.status else None
        if payload.amount is not None:
            order_size = to_decimal(payload.amount)
        elif active_pair is not None:
            order_size = active_pair.order_size
        else:
            order_size = config.order_size

        return ResolvedOrder(
            symbol=symbol,
            order_size=order_size,
            test_mode=test_mode,
            trading_pair=active_pair,
        )

    async def _lookup_trading_pair(self, symbol: str) -> TradingPair | None:
        try:
            return await self.config_store.get_trading_pair(symbol)
        except Exception as e:
            raise ConfigResolutionError(f"Trading pair lookup failed for {symbol}: {e}") from e

    async def _simulate(self, payload: WebhookPayload, order: ResolvedOrder) -> WebhookResult:
        action = payload.action.value.upper()
        await self.activity.system(
            f"Test mode: Simulated {action} order for {order.symbol}",
            {"symbol": order.symbol, "orderSize": format_decimal(order.order_size), "price": payload.price},
        )
        if payload.stop_loss is not None:
            await self.activity.system(f"Test mode: Stop loss set at {payload.stop_loss}")
        if payload.take_profit is not None:
            await self.activity.system(f"Test mode: Take profit set at {payload.take_profit}")

        body = {
            "success": True,
            "message": f"Test mode: {action} order simulated for {order.symbol}",
            "testMode": True,
        }
        body.update(self._echo(payload, order))
        return WebhookResult(status_code=status.HTTP_200_OK, body=body)

    async def _execute(
        self,
        payload: WebhookPayload,
        order: ResolvedOrder,
        config: Configuration,
    ) -> WebhookResult:
        side = OrderSide.BUY if payload.action == WebhookAction.BUY else OrderSide.SELL
        response = await self.exchange.execute_market_order(order.symbol, side, order.order_size)

        size = format_decimal(order.order_size)
        message = f"{side.value} Order Executed for {size} of {order.symbol}"
        order_details = self._order_details(response, payload, order, config)
        if side == OrderSide.BUY:
            await self.activity.buy_order(message, response.order_id, order_details)
        else:
            await self.activity.sell_order(message, response.order_id, order_details)

        body = {
            "success": True,
            "message": f"{payload.action.value.capitalize()} order executed successfully",
            "orderId": response.order_id,
        }
        body.update(self._echo(payload, order))
        return WebhookResult(status_code=status.HTTP_200_OK, body=body)

    @staticmethod
    def _order_details(
        response: OrderResponse,
        payload: WebhookPayload,
        order: ResolvedOrder,
        config: Configuration,
    ) -> dict[str, Any]:
        risk_source = order.trading_pair or config
        return {
            **response.model_dump(mode="json"),
            "stopLoss": payload.stop_loss,
            "takeProfit": payload.take_profit,
            "strategy": config.strategy().model_dump(mode="json", by_alias=True),
            "risk": {
                "stopLossPercent": str(risk_source.stop_loss_percent),
                "takeProfitPercent": str(risk_source.take_profit_percent),
            },
        }

    @staticmethod
    def _echo(payload: WebhookPayload, order: ResolvedOrder) -> dict[str, Any]:
        echoed: dict[str, Any] = {
            "symbol": order.symbol,
            "orderSize": format_decimal(order.order_size),
        }
        for key, value in (
            ("price", payload.price),
            ("stopLoss", payload.stop_loss),
            ("takeProfit", payload.take_profit),
        ):
            if value is not None:
                echoed[key] = value
        return echoed

    async def _record_failure(
        self,
        message: str,
        error: Exception,
        error_code: str | None = None,
    ) -> None:
        try:
            await self.activity.error(message, error, error_code=error_code)
        except Exception as log_error:
            logger.error(
                "Failed to record webhook failure in activity log",
                original_error=str(error),
                error=str(log_error),
                exc_info=True,
            )

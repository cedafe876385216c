"""Coinbase Advanced Trade brokerage client."""

import json
import time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from relay_api.decimals import format_decimal
from relay_api.errors import CredentialError, ExchangeError, SignatureError
from relay_api.exchange.credentials import CredentialProvider
from relay_api.exchange.signing import Signer
from relay_api.observability.otel import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

ORDERS_PATH = "/api/v3/brokerage/orders"
PRODUCTS_PATH = "/api/v3/brokerage/products"


class OrderSide(str, Enum):
    """Order side."""

    BUY = "BUY"
    SELL = "SELL"


class MarketIOC(BaseModel):
    """Market order sized in base currency, immediate-or-cancel."""

    base_size: str


class OrderConfiguration(BaseModel):
    """Order configuration block."""

    market_market_ioc: MarketIOC


class OrderRequest(BaseModel):
    """Create-order request body."""

    client_order_id: str
    product_id: str
    side: OrderSide
    order_configuration: OrderConfiguration


class OrderResponse(BaseModel):
    """Normalized create-order response."""

    success: bool
    order_id: str | None = None
    product_id: str | None = None
    side: str | None = None
    client_order_id: str | None = None
    failure_reason: str | None = None
    order_configuration: dict[str, Any] | None = None
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "OrderResponse":
        """Parse either the flat or the nested success/error response shape."""
        nested = data.get("success_response") or {}
        error = data.get("error_response") or {}
        failure_reason = data.get("failure_reason") or error.get("error") or error.get("message")
        if failure_reason == "UNKNOWN_FAILURE_REASON" and error:
            failure_reason = error.get("error") or error.get("message") or failure_reason
        return cls(
            success=bool(data.get("success", False)),
            order_id=data.get("order_id") or nested.get("order_id"),
            product_id=data.get("product_id") or nested.get("product_id"),
            side=data.get("side") or nested.get("side"),
            client_order_id=data.get("client_order_id") or nested.get("client_order_id"),
            failure_reason=failure_reason,
            order_configuration=data.get("order_configuration"),
            raw=data,
        )


def new_client_order_id() -> str:
    """Generate a unique client order id."""
    return f"order-{uuid4().hex}"


class CoinbaseClient:
    """Signed HTTP client for the Coinbase brokerage API."""

    def __init__(
        self,
        credentials: CredentialProvider,
        signer: Signer,
        base_url: str = "https://api.coinbase.com",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Coinbase client.

        Args:
            credentials: Provider resolved lazily on the first signed call
            signer: Signing strategy
            base_url: API base URL
            timeout: Per-request timeout in seconds
            http_client: Optional shared client (tests inject a mock transport)
        """
        self.credentials = credentials
        self.signer = signer
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._http_client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def _auth_headers(self, method: str, path: str, body: str) -> dict[str, str]:
        creds = self.credentials.get_credentials()
        timestamp = int(time.time())
        signature = self.signer.sign(
            method,
            path,
            body,
            timestamp,
            creds.private_key.get_secret_value(),
        )
        return {
            "Content-Type": "application/json",
            "CB-ACCESS-KEY": creds.key_id,
            "CB-ACCESS-TIMESTAMP": str(timestamp),
            "CB-ACCESS-SIGNATURE": signature,
        }

    async def execute_market_order(
        self,
        symbol: str,
        side: OrderSide,
        base_size: Decimal,
    ) -> OrderResponse:
        """Place a market IOC order sized in base currency.

        Args:
            symbol: Product id, e.g. BTC-USD
            side: BUY or SELL
            base_size: Quantity of the base currency

        Returns:
            Parsed order response

        Raises:
            CredentialError: If credentials cannot be loaded
            SignatureError: If the request cannot be signed
            ExchangeError: On transport failure, timeout, non-2xx or rejected order
        """
        order = OrderRequest(
            client_order_id=new_client_order_id(),
            product_id=symbol,
            side=side,
            order_configuration=OrderConfiguration(
                market_market_ioc=MarketIOC(base_size=format_decimal(base_size))
            ),
        )
        body = order.model_dump_json()

        with tracer.start_as_current_span("coinbase.execute_market_order") as span:
            span.set_attribute("coinbase.product_id", symbol)
            span.set_attribute("coinbase.side", side.value)
            span.set_attribute("coinbase.client_order_id", order.client_order_id)

            headers = self._auth_headers("POST", ORDERS_PATH, body)

            logger.info(
                "Submitting market order",
                product_id=symbol,
                side=side.value,
                base_size=format_decimal(base_size),
                client_order_id=order.client_order_id,
            )

            try:
                response = await self._client().post(
                    f"{self.base_url}{ORDERS_PATH}",
                    content=body,
                    headers=headers,
                    timeout=self.timeout,
                )
            except httpx.TimeoutException as e:
                logger.error("Coinbase order request timed out", product_id=symbol, error=str(e))
                raise ExchangeError(f"Order request timed out after {self.timeout}s") from e
            except httpx.HTTPError as e:
                logger.error("Coinbase order request failed", product_id=symbol, error=str(e))
                raise ExchangeError(f"Order request failed: {e}") from e

            payload = _decode_body(response)
            span.set_attribute("http.status_code", response.status_code)

            if response.is_error:
                logger.error(
                    "Coinbase API error",
                    status_code=response.status_code,
                    body=payload,
                )
                raise ExchangeError(
                    f"Coinbase API returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    body=payload,
                )

            if not isinstance(payload, dict):
                raise ExchangeError(
                    "Unexpected order response from Coinbase",
                    status_code=response.status_code,
                    body=payload,
                )

            try:
                result = OrderResponse.from_api(payload)
            except PydanticValidationError as e:
                raise ExchangeError(
                    "Malformed order response from Coinbase",
                    status_code=response.status_code,
                    body=payload,
                ) from e

            if not result.success:
                logger.error(
                    "Coinbase rejected order",
                    product_id=symbol,
                    failure_reason=result.failure_reason,
                )
                raise ExchangeError(
                    f"Order rejected: {result.failure_reason or 'unknown reason'}",
                    status_code=response.status_code,
                    body=payload,
                )

            logger.info("Market order accepted", order_id=result.order_id, product_id=symbol)
            return result

    async def test_connection(self) -> bool:
        """Probe the API with a cheap signed read.

        Returns:
            True on any 2xx response, False on any failure
        """
        with tracer.start_as_current_span("coinbase.test_connection"):
            try:
                headers = self._auth_headers("GET", PRODUCTS_PATH, "")
                response = await self._client().get(
                    f"{self.base_url}{PRODUCTS_PATH}",
                    headers=headers,
                    params={"limit": 1},
                    timeout=self.timeout,
                )
                response.raise_for_status()
                return True
            except (CredentialError, SignatureError, httpx.HTTPError) as e:
                logger.warning("Failed to connect to Coinbase API", error=str(e))
                return False
            except Exception as e:
                logger.error("Unexpected error probing Coinbase API", error=str(e), exc_info=True)
                return False


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text

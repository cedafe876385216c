"""Coinbase exchange access: credentials, signing and the brokerage client."""

from relay_api.exchange.client import (
    CoinbaseClient,
    OrderRequest,
    OrderResponse,
    OrderSide,
)
from relay_api.exchange.credentials import ApiCredentials, CredentialProvider
from relay_api.exchange.signing import (
    PLACEHOLDER_SIGNATURE,
    PlaceholderSigner,
    PrivateKeySigner,
    Signer,
    build_signer,
)

__all__ = [
    "ApiCredentials",
    "CoinbaseClient",
    "CredentialProvider",
    "OrderRequest",
    "OrderResponse",
    "OrderSide",
    "PLACEHOLDER_SIGNATURE",
    "PlaceholderSigner",
    "PrivateKeySigner",
    "Signer",
    "build_signer",
]

"""Webhook Order Relay: turns trading signals into Coinbase market orders."""

__version__ = "0.1.0"

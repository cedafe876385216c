"""Webhook handling: payload schema and the order orchestrator."""

from relay_api.webhook.orchestrator import WebhookOrchestrator
from relay_api.webhook.schemas import (
    ResolvedOrder,
    WebhookAction,
    WebhookPayload,
    WebhookResult,
)

__all__ = [
    "ResolvedOrder",
    "WebhookAction",
    "WebhookOrchestrator",
    "WebhookPayload",
    "WebhookResult",
]

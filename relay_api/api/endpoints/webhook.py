"""Webhook endpoint for receiving trading signals."""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from relay_api.api.dependencies import get_orchestrator
from relay_api.webhook.orchestrator import WebhookOrchestrator

router = APIRouter()


def client_ip(request: Request) -> str | None:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


async def read_payload(request: Request) -> Any:
    """Decode the body as JSON, falling back to raw text so it can still be audited."""
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


@router.post("")
async def receive_webhook(
    request: Request,
    orchestrator: WebhookOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """
    Receive a trading signal and execute (or simulate) the order.

    The body is validated by the orchestrator rather than by FastAPI so that
    malformed deliveries are logged before they are rejected.
    """
    payload = await read_payload(request)
    result = await orchestrator.handle(payload, client_ip(request))
    return JSONResponse(status_code=result.status_code, content=result.body)

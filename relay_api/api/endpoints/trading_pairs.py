"""Trading pair CRUD endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status
from pydantic import ValidationError as PydanticValidationError

from relay_api.api.dependencies import get_activity_logger, get_config_store
from relay_api.api.responses import error_response, success_response
from relay_api.errors import ConflictError, NotFoundError, ValidationError
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.configuration import ConfigurationStore, TradingPair, TradingPairCreate
from relay_api.webhook.orchestrator import format_validation_error

router = APIRouter()


@router.get("", response_model=list[TradingPair])
async def list_trading_pairs(
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """List all trading pairs."""
    try:
        return await store.list_trading_pairs()
    except Exception as e:
        await activity.error("Failed to get trading pairs", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to get trading pairs")


@router.get("/{symbol}", response_model=TradingPair)
async def get_trading_pair(
    symbol: str,
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Get a trading pair by symbol."""
    try:
        pair = await store.get_trading_pair(symbol)
    except Exception as e:
        await activity.error(f"Failed to get trading pair {symbol}", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to get trading pair")

    if pair is None:
        error = NotFoundError(f"Trading pair {symbol} not found")
        await activity.error(f"Failed to get trading pair {symbol}", error)
        return error_response(status.HTTP_404_NOT_FOUND, error.message)
    return pair


@router.post("", response_model=TradingPair, status_code=status.HTTP_201_CREATED)
async def create_trading_pair(
    body: dict[str, Any] = Body(...),
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Create a trading pair.

    The body is validated here rather than by FastAPI so rejected requests
    are recorded in the activity log.
    """
    try:
        data = TradingPairCreate.model_validate(body)
    except PydanticValidationError as e:
        error = ValidationError(format_validation_error(e))
        await activity.error("Invalid trading pair", error)
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid trading pair", error=error.message)

    try:
        pair = await store.create_trading_pair(data)
        await activity.system(f"Created new trading pair: {pair.symbol}")
        return pair
    except ConflictError as e:
        await activity.error("Failed to create trading pair", e)
        return error_response(status.HTTP_409_CONFLICT, e.message)
    except Exception as e:
        await activity.error("Failed to create trading pair", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create trading pair")


@router.put("/{symbol}", response_model=TradingPair)
async def update_trading_pair(
    symbol: str,
    updates: dict[str, Any] = Body(...),
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Update a trading pair. ``id``, ``symbol`` and ``createdAt`` cannot change."""
    try:
        pair = await store.update_trading_pair(symbol, updates)
        await activity.system(f"Updated trading pair: {pair.symbol}")
        return pair
    except NotFoundError as e:
        await activity.error(f"Failed to update trading pair {symbol}", e)
        return error_response(status.HTTP_404_NOT_FOUND, e.message)
    except ValidationError as e:
        await activity.error(f"Failed to update trading pair {symbol}", e)
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid trading pair", error=e.message)
    except Exception as e:
        await activity.error(f"Failed to update trading pair {symbol}", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update trading pair")


@router.delete("/{symbol}")
async def delete_trading_pair(
    symbol: str,
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Delete a trading pair."""
    try:
        await store.delete_trading_pair(symbol)
        await activity.system(f"Deleted trading pair: {symbol}")
        return success_response(f"Trading pair {symbol} deleted")
    except NotFoundError as e:
        await activity.error(f"Failed to delete trading pair {symbol}", e)
        return error_response(status.HTTP_404_NOT_FOUND, e.message)
    except Exception as e:
        await activity.error(f"Failed to delete trading pair {symbol}", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete trading pair")

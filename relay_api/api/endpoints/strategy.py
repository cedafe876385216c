"""Strategy settings endpoints (strategy subset of the configuration)."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from relay_api.api.dependencies import get_activity_logger, get_config_store
from relay_api.api.responses import error_response
from relay_api.errors import ValidationError
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.configuration import ConfigurationStore, StrategySettings, known_fields

router = APIRouter()


@router.get("", response_model=StrategySettings)
async def get_strategy(
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Get strategy parameters."""
    try:
        config = await store.get()
        return config.strategy()
    except Exception as e:
        await activity.error("Failed to get strategy configuration", e)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to get strategy configuration"
        )


@router.post("", response_model=StrategySettings)
async def update_strategy(
    updates: dict[str, Any] = Body(...),
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Update strategy parameters; other configuration fields in the body are ignored."""
    try:
        config = await store.update(known_fields(StrategySettings, updates))
        await activity.system("Updated strategy configuration")
        return config.strategy()
    except ValidationError as e:
        await activity.error("Invalid strategy configuration", e)
        return error_response(
            status.HTTP_400_BAD_REQUEST, "Invalid strategy configuration", error=e.message
        )
    except Exception as e:
        await activity.error("Failed to update strategy configuration", e)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update strategy configuration"
        )

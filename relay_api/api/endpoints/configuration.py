"""Global configuration endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from relay_api.api.dependencies import get_activity_logger, get_config_store
from relay_api.api.responses import error_response
from relay_api.errors import ValidationError
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.configuration import Configuration, ConfigurationStore

router = APIRouter()


@router.get("", response_model=Configuration)
async def get_configuration(
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Get the current global configuration."""
    try:
        return await store.get()
    except Exception as e:
        await activity.error("Error fetching configuration", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch configuration")


@router.post("", response_model=Configuration)
async def update_configuration(
    updates: dict[str, Any] = Body(...),
    store: ConfigurationStore = Depends(get_config_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """
    Partially update the global configuration.

    Unknown fields are ignored.
    """
    try:
        config = await store.update(updates)
        await activity.system("Configuration updated", config)
        return config
    except ValidationError as e:
        await activity.error("Invalid configuration update", e)
        return error_response(
            status.HTTP_400_BAD_REQUEST, "Invalid configuration", error=e.message
        )
    except Exception as e:
        await activity.error("Error updating configuration", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update configuration")

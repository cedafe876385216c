"""Activity log endpoints."""

from fastapi import APIRouter, Depends, Query, status

from relay_api.api.dependencies import get_activity_logger, get_log_store
from relay_api.api.responses import error_response, success_response
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.activity_log import ActivityLogEntry, ActivityLogStore

router = APIRouter()


@router.get("", response_model=list[ActivityLogEntry])
async def list_logs(
    limit: int = Query(20, ge=1, le=1000, description="Maximum number of entries to return"),
    log_type: str | None = Query(None, alias="type", description="Filter by entry type"),
    store: ActivityLogStore = Depends(get_log_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """List activity log entries, newest first."""
    try:
        return await store.query(limit=limit, log_type=log_type)
    except Exception as e:
        await activity.error("Error fetching activity logs", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch activity logs")


@router.post("/clear")
async def clear_logs(
    store: ActivityLogStore = Depends(get_log_store),
    activity: ActivityLogger = Depends(get_activity_logger),
):
    """Discard all activity log entries."""
    try:
        await store.clear()
        await activity.system("Activity logs cleared")
        return success_response("Activity logs cleared successfully")
    except Exception as e:
        await activity.error("Error clearing activity logs", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to clear activity logs")

"""Exchange connectivity endpoint."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from relay_api.api.dependencies import get_container
from relay_api.api.responses import error_response
from relay_api.container import ServiceContainer
from relay_api.services.connection import check_exchange_connection

router = APIRouter()


@router.get("")
async def test_connection(
    container: ServiceContainer = Depends(get_container),
) -> JSONResponse:
    """Probe the Coinbase API with a signed read."""
    try:
        result = await check_exchange_connection(
            container.exchange,
            container.activity,
            simulate=container.settings.simulate_exchange_connection,
        )
    except Exception as e:
        await container.activity.error("Error testing Coinbase API connection", e)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error testing Coinbase API connection"
        )

    code = status.HTTP_200_OK if result.success else status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content=result.model_dump())

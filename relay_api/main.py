"""Webhook Order Relay - FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay_api.api.router import api_router
from relay_api.config import Settings, get_settings
from relay_api.container import ServiceContainer, build_container
from relay_api.observability.logging import configure_logging
from relay_api.observability.otel import flush_telemetry, setup_telemetry

logger = structlog.get_logger()


async def announce_startup(container: ServiceContainer) -> None:
    """Record startup in the activity log, probing the exchange unless simulated."""
    activity = container.activity
    try:
        if container.settings.simulate_exchange_connection:
            await activity.system("Relay started - simulating Coinbase API connection")
            return

        if await container.exchange.test_connection():
            await activity.system("Relay started - Connected to Coinbase API")
        else:
            await activity.error(
                "Relay started - Failed to connect to Coinbase API",
                "Check API key and network connection",
                error_code="CONNECTION_FAILED",
            )
    except Exception as e:
        logger.error("Error initializing system", error=str(e), exc_info=True)
        await activity.error("Error initializing system", e)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    container: ServiceContainer = app.state.container
    settings = container.settings

    # Startup
    logger.info("Starting Webhook Order Relay", version=settings.app_version)
    setup_telemetry(settings)
    await container.startup()
    await announce_startup(container)
    yield
    # Shutdown
    logger.info("Shutting down Webhook Order Relay")
    await container.shutdown()
    flush_telemetry()


def create_app(
    settings: Settings | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """Application factory.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        container: Pre-built service container (tests inject fakes here)
    """
    settings = settings or (container.settings if container else get_settings())
    configure_logging(settings.log_level, settings.json_logs)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Webhook-driven market order relay for Coinbase Advanced Trade",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.container = container or build_container(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API router
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "webhook": "/api/webhook",
            "docs": "/docs" if settings.debug else "disabled",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

"""FastAPI dependency providers backed by the app's service container."""

from fastapi import Depends, Request

from relay_api.container import ServiceContainer
from relay_api.services.activity_logger import ActivityLogger
from relay_api.storage.activity_log import ActivityLogStore
from relay_api.storage.configuration import ConfigurationStore
from relay_api.webhook.orchestrator import WebhookOrchestrator


def get_container(request: Request) -> ServiceContainer:
    """Get the service container attached to the application."""
    return request.app.state.container


def get_config_store(container: ServiceContainer = Depends(get_container)) -> ConfigurationStore:
    """Get the configuration store."""
    return container.config_store


def get_log_store(container: ServiceContainer = Depends(get_container)) -> ActivityLogStore:
    """Get the activity log store."""
    return container.log_store


def get_activity_logger(container: ServiceContainer = Depends(get_container)) -> ActivityLogger:
    """Get the activity logger."""
    return container.activity


def get_orchestrator(container: ServiceContainer = Depends(get_container)) -> WebhookOrchestrator:
    """Get the webhook orchestrator."""
    return container.orchestrator

"""Services package for the order relay."""

from relay_api.services.activity_logger import ActivityLogger
from relay_api.services.connection import ConnectionStatus, check_exchange_connection

__all__ = [
    "ActivityLogger",
    "ConnectionStatus",
    "check_exchange_connection",
]

"""API router aggregating all endpoints."""

from fastapi import APIRouter

from relay_api.api.endpoints import configuration, connection, logs, strategy, trading_pairs, webhook

api_router = APIRouter()

api_router.include_router(webhook.router, prefix="/webhook", tags=["webhook"])
api_router.include_router(configuration.router, prefix="/config", tags=["config"])
api_router.include_router(strategy.router, prefix="/strategy", tags=["strategy"])
api_router.include_router(connection.router, prefix="/test-connection", tags=["connection"])
api_router.include_router(logs.router, prefix="/logs", tags=["logs"])
api_router.include_router(trading_pairs.router, prefix="/trading-pairs", tags=["trading-pairs"])

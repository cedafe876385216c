"""Shared JSON response helpers."""

from typing import Any

from fastapi.responses import JSONResponse


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    """Build a ``{success: false, message}`` error body."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def success_response(message: str, status_code: int = 200) -> JSONResponse:
    """Build a ``{success: true, message}`` body."""
    return JSONResponse(status_code=status_code, content={"success": True, "message": message})

"""Exception types shared by every route module and their HTTP mappings."""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """A required credential or setting is missing."""


class SquareAPIError(Exception):
    """Square answered with a non-success status.

    ``errors`` holds Square's error list (or the raw body when it has none)
    exactly as received.
    """

    def __init__(self, status_code: int, errors: Any, message: Optional[str] = None):
        self.status_code = status_code
        self.errors = errors
        super().__init__(message or f"Square API error ({status_code})")


def error_response(error: str, status_code: int, details: Any = None) -> JSONResponse:
    """Build the ``{error, details}`` body used by every gateway route."""
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach app-wide handlers for gateway exception types."""

    # Malformed bodies are client errors in the same {error} shape as the
    # explicit checks in each route, not FastAPI's default 422.
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(
            "Invalid request body",
            status.HTTP_400_BAD_REQUEST,
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error on {request.url.path}: {exc}")
        return error_response(
            "Configuration error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=str(exc),
        )

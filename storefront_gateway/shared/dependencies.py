"""FastAPI dependencies that hand the lifespan-built clients to route handlers."""

from fastapi import Request

from .config import Settings
from .errors import ConfigurationError
from .square_client import SquareClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_square_client(request: Request) -> SquareClient:
    square = getattr(request.app.state, "square", None)
    if square is None:
        raise ConfigurationError("SQUARE_ACCESS_TOKEN environment variable is required")
    return square

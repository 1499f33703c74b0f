"""
main.py - Storefront Gateway

PURPOSE:
    Server-side routes for the bookstore storefront. Every route is a thin,
    stateless proxy to a vendor platform:
        - Square: inventory counts, payments, orders, pickup fulfillment
        - Pinecone: natural-language book search over the "books" namespace
        - Redis (optional): remembers reconciled webhook event ids

API ENDPOINTS:
    POST /api/square/inventory/batch                 - Summed IN_STOCK counts per variation
    POST /api/orders/create                          - Create a pickup order from a cart
    GET  /api/orders/{order_id}                      - Order details
    GET  /api/orders/customer/{email}                - Paid orders for one customer
    POST /api/orders/{order_id}/payment              - Charge an order
    POST /api/orders/webhook/payment-updated         - Square payment notifications (always 200)
    POST /api/search                                 - Book search results
    POST /api/search/text                            - Snippet search results
    GET  /api/search/status                          - Index readiness probe
    GET  /api/orders/admin/recent-orders             - (admin) recent orders
    PUT  /api/orders/admin/{order_id}/pickup-status  - (admin) set pickup state
    POST /api/orders/admin/update-paid-orders-status - (admin) promote paid orders
    GET  /api/orders/admin/search-by-email/{email}   - (admin) orders for a customer email
    GET  /health                                     - Health check

CONFIGURATION:
    Read once from the environment at startup (see shared/config.py). A missing
    required credential stops the process before it serves any request.

TESTING COMMANDS:
    curl -X POST http://localhost:8000/api/square/inventory/batch \
      -H "Content-Type: application/json" \
      -d '{"variationIds": ["VAR1", "VAR2"]}'

    curl -X POST http://localhost:8000/api/search/text \
      -H "Content-Type: application/json" \
      -d '{"query": "a cozy mystery set in a bookshop", "limit": 5}'

    curl -X GET http://localhost:8000/api/orders/admin/recent-orders \
      -H "x-admin-password: $ADMIN_PASSWORD"

USAGE:
    uvicorn storefront_gateway.main:app --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis
from fastapi import FastAPI

from . import __version__
from .admin.auth import register_admin_handlers
from .admin.routes import router as admin_router
from .inventory.routes import router as inventory_router
from .orders.routes import router as orders_router
from .payments.routes import router as payments_router
from .search.gateway import SearchGateway
from .search.routes import router as search_router
from .shared.config import Settings
from .shared.errors import register_exception_handlers
from .shared.logging_config import setup_logging
from .shared.square_client import SquareClient
from .webhooks.routes import router as webhooks_router

SERVICE_NAME = "storefront-gateway"

setup_logging(SERVICE_NAME)
logger = logging.getLogger(__name__)


def connect_redis(settings: Settings) -> Optional[redis.Redis]:
    """Redis is optional; without it webhook replays rely on idempotent fulfillment alone."""
    if not settings.redis_host:
        logger.info("REDIS_HOST not set, webhook event de-duplication disabled")
        return None
    client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=True)
    client.ping()
    logger.info("Redis connected")
    return client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build vendor clients once; fail fast on missing credentials."""
    logger.info("Starting Storefront Gateway...")
    state = app.state

    if getattr(state, "settings", None) is None:
        state.settings = Settings()
    settings = state.settings
    setup_logging(SERVICE_NAME, level=settings.log_level)

    if settings.uses_default_admin_password():
        logger.warning("ADMIN_PASSWORD is not set; using the insecure development default")

    if getattr(state, "square", None) is None:
        settings.require_complete()
        state.square = SquareClient.from_settings(settings)
        logger.info(f"Square client initialized ({settings.square_environment})")

    if getattr(state, "search", None) is None:
        state.search = SearchGateway.from_settings(settings)
        logger.info(f"Pinecone index {settings.pinecone_index_name} initialized")

    if getattr(state, "redis", None) is None:
        try:
            state.redis = connect_redis(settings)
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    yield

    logger.info("Shutting down Storefront Gateway...")
    if isinstance(state.square, SquareClient):
        state.square.close()
    if getattr(state, "redis", None) is not None:
        state.redis.close()


def create_app(
    settings: Optional[Settings] = None,
    square=None,
    search: Optional[SearchGateway] = None,
    redis_client=None,
) -> FastAPI:
    """
    Assemble the gateway.

    Clients passed in are used as-is (tests pass fakes); anything left out is
    built from ``settings`` in the lifespan.
    """
    app = FastAPI(title="Storefront Gateway", version=__version__, lifespan=lifespan)

    if settings is not None:
        app.state.settings = settings
    if square is not None:
        app.state.square = square
    if search is not None:
        app.state.search = search
    if redis_client is not None:
        app.state.redis = redis_client

    register_exception_handlers(app)
    register_admin_handlers(app)

    # Admin and webhook routes before /api/orders/{order_id}
    app.include_router(admin_router)
    app.include_router(webhooks_router)
    app.include_router(payments_router)
    app.include_router(orders_router)
    app.include_router(inventory_router)
    app.include_router(search_router)

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "service": SERVICE_NAME, "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Settings().gateway_port)

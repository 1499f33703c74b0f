"""
auth.py - Shared-secret gate for admin routes

Callers send the admin password in the ``x-admin-password`` header; it is
compared against ``ADMIN_PASSWORD`` in constant time. This is still a static
shared secret with no expiry; signed, expiring tokens would replace it.
"""

import hmac
import logging
from typing import Optional

from fastapi import FastAPI, Header, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized access. Admin authentication required."


class AdminUnauthorized(Exception):
    pass


def password_matches(provided: Optional[str], expected: str) -> bool:
    if provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def require_admin(
    request: Request,
    x_admin_password: Optional[str] = Header(default=None),
) -> None:
    """Dependency: stop the request unless the admin password matches."""
    if not password_matches(x_admin_password, request.app.state.settings.admin_password):
        logger.warning(f"Rejected admin request to {request.url.path}")
        raise AdminUnauthorized()


def register_admin_handlers(app: FastAPI) -> None:
    @app.exception_handler(AdminUnauthorized)
    async def admin_unauthorized_handler(request: Request, exc: AdminUnauthorized):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "error": UNAUTHORIZED_MESSAGE},
        )

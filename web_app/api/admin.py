"""Admin authentication dependency."""

import logging
import secrets
from typing import Optional

from fastapi import Header, Request

from ephemera.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger("ephemera.web.admin")


async def require_admin(
    request: Request,
    x_admin_secret: Optional[str] = Header(None, alias="X-Admin-Secret"),
) -> None:
    """Reject the request unless it carries the configured admin secret.

    Raises:
        ForbiddenError: If no admin secret is configured
        UnauthorizedError: If the header is missing or wrong
    """
    expected = request.app.state.config.admin_secret
    if not expected:
        raise ForbiddenError("admin endpoint disabled")

    provided = x_admin_secret or ""
    if not secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        client_ip = getattr(request.state, "client_ip", "unknown")
        logger.warning(f"Unauthorized admin access attempt from {client_ip}")
        raise UnauthorizedError("unauthorized")

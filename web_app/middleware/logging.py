"""Logging middleware."""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging.

    Every request gets a request id, echoed in the ``X-Request-ID`` header.
    """

    def __init__(self, app, logger: logging.Logger = None):
        """Initialize logging middleware."""
        super().__init__(app)
        self.logger = logger or logging.getLogger("ephemera.web")

    async def dispatch(self, request: Request, call_next: Callable):
        """Log request and response."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        client_ip = getattr(request.state, "client_ip", None) or (
            request.client.host if request.client else "unknown"
        )

        self.logger.info(
            f"Request completed: {request.method} {request.url.path} - "
            f"Status: {response.status_code} - Duration: {duration_ms:.2f}ms - "
            f"IP: {client_ip} - UA: {request.headers.get('user-agent', '')} - "
            f"request_id={request_id}"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

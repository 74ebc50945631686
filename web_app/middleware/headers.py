"""Forwarded headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from ephemera.common.headers import extract_forwarded_headers, get_client_ip


class ForwardedHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to extract proxy headers and resolve the client address."""

    async def dispatch(self, request: Request, call_next: Callable):
        """Store forwarded headers and the client IP in request state."""
        forwarded = extract_forwarded_headers(request.headers)
        request.state.forwarded_proto = forwarded["forwarded_proto"]
        request.state.forwarded_host = forwarded["forwarded_host"]
        request.state.forwarded_for = forwarded["forwarded_for"]
        request.state.client_ip = get_client_ip(
            request.headers,
            request.client.host if request.client else None,
        )

        response = await call_next(request)
        return response

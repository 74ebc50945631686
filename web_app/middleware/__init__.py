"""Middleware for the ephemera web app."""

from .error_handling import register_error_handlers
from .headers import ForwardedHeadersMiddleware
from .logging import LoggingMiddleware
from .ratelimit import RateLimitMiddleware, TokenBucket

__all__ = [
    "ForwardedHeadersMiddleware",
    "LoggingMiddleware",
    "RateLimitMiddleware",
    "TokenBucket",
    "register_error_handlers",
]

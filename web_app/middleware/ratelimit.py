"""Global token-bucket rate limiting."""

import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ephemera.errors import RateLimitedError


class TokenBucket:
    """Allows ``rate`` requests per second on average with bursts up to ``burst``."""

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic):
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._updated = clock()

    def allow(self) -> bool:
        """Take one token if available."""
        now = self._clock()
        self._tokens = min(self.burst, self._tokens + (now - self._updated) * self.rate)
        self._updated = now
        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests with 429 once the shared bucket is empty."""

    def __init__(
        self,
        app,
        rate: float = 10,
        burst: int = 10,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(app)
        self.bucket = TokenBucket(rate, burst)
        self.logger = logger or logging.getLogger("ephemera.web")

    async def dispatch(self, request: Request, call_next: Callable):
        if not self.bucket.allow():
            client_ip = getattr(request.state, "client_ip", None) or (
                request.client.host if request.client else "unknown"
            )
            self.logger.warning(f"Rate limit exceeded: {request.method} {request.url.path} from {client_ip}")
            error = RateLimitedError()
            return JSONResponse(error.to_dict(), status_code=error.status_code)

        return await call_next(request)

"""FastAPI application factory."""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .web import web_router
from .middleware.error_handling import register_error_handlers
from .middleware.headers import ForwardedHeadersMiddleware
from .middleware.logging import LoggingMiddleware
from .middleware.ratelimit import RateLimitMiddleware


def create_app(
    db_instance,
    content_service,
    url_service,
    sweeper,
    config,
    logger: Optional[logging.Logger] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        db_instance: Database instance
        content_service: Content service instance
        url_service: URL service instance
        sweeper: Expiry sweeper instance
        config: Configuration instance
        logger: Optional logger for the web layer

    Returns:
        Configured FastAPI app
    """
    web_logger = logger or logging.getLogger("ephemera.web")

    app = FastAPI(
        title="ephemera",
        description="Ephemeral file, note and short URL sharing",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Store instances in app state for access in routes
    app.state.db = db_instance
    app.state.content_service = content_service
    app.state.url_service = url_service
    app.state.sweeper = sweeper
    app.state.config = config

    register_error_handlers(app, web_logger)

    # Middleware added last runs first: CORS, logging, forwarded headers, rate limit
    app.add_middleware(
        RateLimitMiddleware,
        rate=config.rate_limit_per_sec,
        burst=config.rate_limit_burst,
        logger=web_logger,
    )
    app.add_middleware(ForwardedHeadersMiddleware)
    app.add_middleware(LoggingMiddleware, logger=web_logger)

    origins = config.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentials with a wildcard origin
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Content-Length", "Accept", "X-Admin-Secret", "Authorization"],
        expose_headers=["X-Request-ID"],
    )

    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Web"])

    return app

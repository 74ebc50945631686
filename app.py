#!/usr/bin/env python3
"""
Main entry point for the ephemera service.

Concurrency: one process serves many connections via async I/O (FastAPI +
asyncpg pool, or sqlite3 on a thread pool). Set WORKERS > 1 for
multi-process scaling; each worker has its own pool, counter updater and
expiry sweeper.

Usage:
    python app.py

Environment variables:
    DATABASE_URL - PostgreSQL connection URL (SQLite at DB_PATH when unset)
    DB_PATH - SQLite database file
    UPLOAD_DIR - Directory for uploaded files
    BASE_URL - Base URL for short links
    ADMIN_SECRET - Secret for admin endpoints (empty disables them)
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from ephemera.bootstrap import build_components
from ephemera.common.logging_config import setup_logging
from web_app import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting ephemera service...")
    logger.info(f"Using {'postgres' if config.database_url else 'sqlite at ' + config.db_path}")

    try:
        components = await build_components(config, logger=logger)
    except Exception as e:
        logger.error(f"Failed to initialize service: {e}")
        sys.exit(1)

    # Update app state
    app.state.db = components.db
    app.state.content_service = components.content_service
    app.state.url_service = components.url_service
    app.state.sweeper = components.sweeper

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down ephemera service...")
    await components.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("ephemera service")
    logger.info(f"Configuration: {config.safe_dump()}")

    # Instances are created in lifespan
    app = create_app(
        db_instance=None,
        content_service=None,
        url_service=None,
        sweeper=None,
        config=config,
        logger=logger.getChild("web"),
    )

    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

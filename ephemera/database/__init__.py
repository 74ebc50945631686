"""Database layer for ephemera."""

import logging
from typing import Optional

from .base import Database, QueryRunner
from .dialects import Dialect, PostgresDialect, SQLiteDialect, get_dialect
from .models import (
    ClientMeta,
    Content,
    ContentKind,
    ContentStats,
    Lifecycle,
    ShortenedURL,
    URLClick,
    URLStats,
)
from .content_store import ContentStore
from .url_store import URLStore

DEFAULT_SQLITE_PATH = "./ephemera.db"


def create_database(
    database_url: Optional[str] = None,
    db_path: Optional[str] = None,
    max_connections: int = 25,
    max_idle_connections: int = 5,
    connection_timeout_seconds: int = 30,
    logger: Optional[logging.Logger] = None,
) -> Database:
    """Create the configured backend: PostgreSQL when a URL is given, SQLite otherwise."""
    if database_url:
        from .postgres import PostgresDatabase
        return PostgresDatabase(
            database_url,
            max_connections=max_connections,
            max_idle_connections=max_idle_connections,
            connection_timeout_seconds=connection_timeout_seconds,
            logger=logger,
        )

    from .sqlite import SQLiteDatabase
    return SQLiteDatabase(
        db_path or DEFAULT_SQLITE_PATH,
        max_connections=max_connections,
        busy_timeout_seconds=connection_timeout_seconds,
        logger=logger,
    )


__all__ = [
    "ClientMeta",
    "Content",
    "ContentKind",
    "ContentStats",
    "ContentStore",
    "Database",
    "Dialect",
    "Lifecycle",
    "PostgresDialect",
    "QueryRunner",
    "SQLiteDialect",
    "ShortenedURL",
    "URLClick",
    "URLStats",
    "URLStore",
    "create_database",
    "get_dialect",
]

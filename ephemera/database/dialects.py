"""SQL dialects supported by the persistence layer.

Stores write every query once, in a canonical vocabulary:

* ``?`` for positional parameters
* ``{now}`` for the database's current timestamp

A Dialect renders that vocabulary for one backend and describes what the
backend can do (e.g. ``INSERT ... RETURNING``). The dialect is chosen once at
startup; call sites never rewrite SQL themselves.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Sequence, Tuple

NOW_TOKEN = "{now}"


class Dialect(ABC):
    """Backend capability interface."""

    name: str = ""
    supports_returning: bool = False

    @property
    @abstractmethod
    def now_expr(self) -> str:
        """SQL expression for the current UTC timestamp."""

    @abstractmethod
    def placeholders(self, query: str) -> str:
        """Rewrite ``?`` placeholders into the backend's parameter syntax."""

    @abstractmethod
    def adapt_param(self, value: Any) -> Any:
        """Convert a Python value into what the driver expects."""

    @abstractmethod
    def schema_statements(self) -> List[str]:
        """DDL statements creating tables and indexes."""

    def render(self, query: str) -> str:
        return self.placeholders(query.replace(NOW_TOKEN, self.now_expr))

    def adapt_params(self, params: Sequence[Any]) -> Tuple[Any, ...]:
        return tuple(self.adapt_param(p) for p in params)


class PostgresDialect(Dialect):
    name = "postgres"
    supports_returning = True

    @property
    def now_expr(self) -> str:
        return "NOW()"

    def placeholders(self, query: str) -> str:
        parts = query.split("?")
        if len(parts) == 1:
            return query
        out = [parts[0]]
        for index, part in enumerate(parts[1:], start=1):
            out.append(f"${index}")
            out.append(part)
        return "".join(out)

    def adapt_param(self, value: Any) -> Any:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        return value

    def schema_statements(self) -> List[str]:
        return [
            """
            CREATE TABLE IF NOT EXISTS content (
                id TEXT PRIMARY KEY,
                kind TEXT NOT NULL CHECK (kind IN ('file', 'note')),
                title TEXT,
                filename TEXT,
                storage_path TEXT,
                size BIGINT,
                body TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                expires_at TIMESTAMPTZ NOT NULL,
                view_count INTEGER NOT NULL DEFAULT 0,
                deleted_at TIMESTAMPTZ
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_content_expires_at ON content(expires_at)",
            "CREATE INDEX IF NOT EXISTS idx_content_deleted_at ON content(deleted_at)",
            "CREATE INDEX IF NOT EXISTS idx_content_kind ON content(kind)",
            "CREATE INDEX IF NOT EXISTS idx_content_created_at ON content(created_at DESC)",
            """
            CREATE TABLE IF NOT EXISTS shortened_urls (
                id BIGSERIAL PRIMARY KEY,
                short_code TEXT NOT NULL UNIQUE,
                original_url TEXT NOT NULL,
                custom_alias TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                expires_at TIMESTAMPTZ,
                click_count INTEGER NOT NULL DEFAULT 0,
                deleted_at TIMESTAMPTZ
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_shortened_urls_expires_at ON shortened_urls(expires_at)",
            "CREATE INDEX IF NOT EXISTS idx_shortened_urls_deleted_at ON shortened_urls(deleted_at)",
            "CREATE INDEX IF NOT EXISTS idx_shortened_urls_created_at ON shortened_urls(created_at DESC)",
            """
            CREATE TABLE IF NOT EXISTS url_clicks (
                id BIGSERIAL PRIMARY KEY,
                url_id BIGINT NOT NULL REFERENCES shortened_urls(id) ON DELETE CASCADE,
                clicked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                ip_address TEXT,
                user_agent TEXT,
                referrer TEXT
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_url_clicks_url_id ON url_clicks(url_id, clicked_at DESC)",
        ]


class SQLiteDialect(Dialect):
    name = "sqlite"
    supports_returning = False

    # datetime('now') yields this format; stored timestamps must match it
    # because SQLite compares them as text.
    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

    @property
    def now_expr(self) -> str:
        return "datetime('now')"

    def placeholders(self, query: str) -> str:
        return query

    def adapt_param(self, value: Any) -> Any:
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc).replace(tzinfo=None)
            return value.strftime(self.TIMESTAMP_FORMAT)
        return value

    def schema_statements(self) -> List[str]:
        return [
            """
            CREATE TABLE IF NOT EXISTS content (
                id TEXT PRIMARY KEY,
                kind TEXT NOT NULL CHECK (kind IN ('file', 'note')),
                title TEXT,
                filename TEXT,
                storage_path TEXT,
                size INTEGER,
                body TEXT,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                expires_at DATETIME NOT NULL,
                view_count INTEGER NOT NULL DEFAULT 0,
                deleted_at DATETIME
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_content_expires_at ON content(expires_at)",
            "CREATE INDEX IF NOT EXISTS idx_content_deleted_at ON content(deleted_at)",
            "CREATE INDEX IF NOT EXISTS idx_content_kind ON content(kind)",
            "CREATE INDEX IF NOT EXISTS idx_content_created_at ON content(created_at DESC)",
            """
            CREATE TABLE IF NOT EXISTS shortened_urls (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                short_code TEXT NOT NULL UNIQUE,
                original_url TEXT NOT NULL,
                custom_alias TEXT,
                created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                expires_at DATETIME,
                click_count INTEGER NOT NULL DEFAULT 0,
                deleted_at DATETIME
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_shortened_urls_expires_at ON shortened_urls(expires_at)",
            "CREATE INDEX IF NOT EXISTS idx_shortened_urls_deleted_at ON shortened_urls(deleted_at)",
            "CREATE INDEX IF NOT EXISTS idx_shortened_urls_created_at ON shortened_urls(created_at DESC)",
            """
            CREATE TABLE IF NOT EXISTS url_clicks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url_id INTEGER NOT NULL REFERENCES shortened_urls(id) ON DELETE CASCADE,
                clicked_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                ip_address TEXT,
                user_agent TEXT,
                referrer TEXT
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_url_clicks_url_id ON url_clicks(url_id, clicked_at DESC)",
        ]


def get_dialect(name: str) -> Dialect:
    name_lower = name.lower()
    if name_lower in ("postgres", "postgresql"):
        return PostgresDialect()
    if name_lower == "sqlite":
        return SQLiteDialect()
    raise ValueError(f"Unsupported dialect: {name}. Choose 'postgres' or 'sqlite'.")

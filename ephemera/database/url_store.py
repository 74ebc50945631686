"""Persistence of shortened URLs and their click analytics."""

import logging
from typing import List, Optional

from ..errors import DuplicateKeyError, InternalError, NotFoundError
from .base import Database, QueryRunner
from .models import ShortenedURL, URLClick, as_utc

_COLUMNS = (
    "id, short_code, original_url, custom_alias, created_at, expires_at, "
    "click_count, deleted_at"
)
_NOT_DELETED = "(deleted_at IS NULL OR deleted_at > {now})"
_NOT_EXPIRED = "(expires_at IS NULL OR expires_at > {now})"


class URLStore:
    """Database operations for the ``shortened_urls`` and ``url_clicks`` tables."""

    def __init__(self, db: Database, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    async def create(self, url: ShortenedURL, conn: Optional[QueryRunner] = None) -> ShortenedURL:
        """Insert a shortened URL; fills in its generated id and created_at.

        Raises:
            DuplicateKeyError: If the short code is already taken
            InternalError: On any other database failure
        """
        runner = conn or self.db
        try:
            row = await runner.insert_returning(
                """
                INSERT INTO shortened_urls (short_code, original_url, custom_alias,
                                            expires_at, click_count)
                VALUES (?, ?, ?, ?, 0)
                """,
                url.short_code,
                url.original_url,
                url.custom_alias,
                url.expires_at,
            )
        except DuplicateKeyError:
            self.logger.warning(f"Short code already exists: {url.short_code}")
            raise
        except Exception as e:
            self.logger.error(f"Failed to create shortened URL {url.short_code}: {e}")
            raise InternalError("failed to create shortened URL", e) from e

        url.id = int(row["id"])
        url.created_at = as_utc(row["created_at"])
        url.click_count = 0
        self.logger.info(f"URL shortened: {url.short_code} -> {url.original_url}")
        return url

    async def find_by_short_code(self, short_code: str) -> ShortenedURL:
        """Get a non-deleted URL regardless of expiry.

        Raises:
            NotFoundError: If missing or soft-deleted
        """
        row = await self._fetchrow(
            f"SELECT {_COLUMNS} FROM shortened_urls WHERE short_code = ? AND {_NOT_DELETED}",
            short_code,
        )
        if row is None:
            raise NotFoundError("short URL not found")
        return ShortenedURL.from_row(row)

    async def find_active_by_short_code(self, short_code: str) -> ShortenedURL:
        """Get a URL only if it is neither expired nor soft-deleted.

        Raises:
            NotFoundError: If missing, expired or deleted
        """
        row = await self._fetchrow(
            f"SELECT {_COLUMNS} FROM shortened_urls "
            f"WHERE short_code = ? AND {_NOT_EXPIRED} AND {_NOT_DELETED}",
            short_code,
        )
        if row is None:
            raise NotFoundError("short URL not found or expired")
        return ShortenedURL.from_row(row)

    async def short_code_exists(self, short_code: str) -> bool:
        """Check whether a code is taken, including expired and deleted rows."""
        try:
            exists = await self.db.fetchval(
                "SELECT EXISTS(SELECT 1 FROM shortened_urls WHERE short_code = ?)", short_code
            )
        except Exception as e:
            self.logger.error(f"Failed to check short code {short_code}: {e}")
            raise InternalError("database error", e) from e
        return bool(exists)

    async def increment_click_count(self, url_id: int, conn: Optional[QueryRunner] = None) -> bool:
        """Add one click. Failures are logged and reported as False."""
        runner = conn or self.db
        try:
            await runner.execute(
                "UPDATE shortened_urls SET click_count = click_count + 1 WHERE id = ?", url_id
            )
            return True
        except Exception as e:
            self.logger.error(f"Failed to increment click count for url {url_id}: {e}")
            return False

    async def record_click(self, click: URLClick, conn: Optional[QueryRunner] = None) -> None:
        """Append a click record. ``clicked_at`` is set by the database.

        Raises:
            InternalError: If the insert fails
        """
        runner = conn or self.db
        try:
            await runner.execute(
                """
                INSERT INTO url_clicks (url_id, clicked_at, ip_address, user_agent, referrer)
                VALUES (?, {now}, ?, ?, ?)
                """,
                click.url_id,
                click.ip_address,
                click.user_agent,
                click.referrer,
            )
        except Exception as e:
            self.logger.error(f"Failed to record click for url {click.url_id}: {e}")
            raise InternalError("failed to record click", e) from e

    async def get_recent_clicks(self, url_id: int, limit: int = 100) -> List[URLClick]:
        """Most recent clicks of a URL, newest first."""
        try:
            rows = await self.db.fetch(
                """
                SELECT id, url_id, clicked_at, ip_address, user_agent, referrer
                FROM url_clicks
                WHERE url_id = ?
                ORDER BY clicked_at DESC, id DESC
                LIMIT ?
                """,
                url_id,
                limit,
            )
        except Exception as e:
            self.logger.error(f"Failed to get recent clicks for url {url_id}: {e}")
            raise InternalError("database error", e) from e

        return [URLClick.from_row(row) for row in rows]

    async def soft_delete(self, url_id: int, conn: Optional[QueryRunner] = None) -> None:
        """Mark a URL as deleted.

        Raises:
            NotFoundError: If no live row has this id
        """
        runner = conn or self.db
        try:
            affected = await runner.execute(
                "UPDATE shortened_urls SET deleted_at = {now} WHERE id = ? AND deleted_at IS NULL",
                url_id,
            )
        except Exception as e:
            self.logger.error(f"Failed to soft delete url {url_id}: {e}")
            raise InternalError("failed to delete short URL", e) from e

        if affected == 0:
            raise NotFoundError("short URL not found")
        self.logger.info(f"Short URL soft deleted: {url_id}")

    async def _fetchrow(self, query: str, *args):
        try:
            return await self.db.fetchrow(query, *args)
        except Exception as e:
            self.logger.error(f"Failed to query shortened URLs: {e}")
            raise InternalError("database error", e) from e

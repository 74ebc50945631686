"""Persistence and lifecycle of uploaded files and notes."""

import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from ..errors import AppError, DuplicateKeyError, InternalError, NotFoundError
from .base import Database, QueryRunner
from .models import Content, ContentKind

T = TypeVar("T")

_COLUMNS = (
    "id, kind, title, filename, storage_path, size, body, "
    "created_at, expires_at, view_count, deleted_at"
)
_NOT_DELETED = "(deleted_at IS NULL OR deleted_at > {now})"


class ContentStore:
    """Database operations for the ``content`` table."""

    def __init__(self, db: Database, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    async def create(self, content: Content, conn: Optional[QueryRunner] = None) -> Content:
        """Insert a new content record with a zero view count.

        The id must already have been reserved by the code generator.

        Raises:
            DuplicateKeyError: If the id is already taken
            InternalError: On any other database failure
        """
        try:
            content.validate()
        except ValueError as e:
            raise InternalError("invalid content record", e) from e

        runner = conn or self.db
        try:
            await runner.execute(
                """
                INSERT INTO content (id, kind, title, filename, storage_path, size, body,
                                     created_at, expires_at, view_count)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0)
                """,
                content.id,
                content.kind.value,
                content.title,
                content.filename,
                content.storage_path,
                content.size,
                content.body,
                content.created_at,
                content.expires_at,
            )
        except DuplicateKeyError:
            self.logger.warning(f"Content id already exists: {content.id}")
            raise
        except Exception as e:
            self.logger.error(f"Failed to create content {content.id}: {e}")
            raise InternalError("failed to save content", e) from e

        content.view_count = 0
        self.logger.info(f"Content created: {content.id} ({content.kind.value})")
        return content

    async def find_by_id(self, content_id: str, include_deleted: bool = False) -> Content:
        """Get content regardless of expiry.

        Args:
            content_id: The content id
            include_deleted: Also return rows that were soft-deleted

        Raises:
            NotFoundError: If absent (or soft-deleted, unless include_deleted)
        """
        query = f"SELECT {_COLUMNS} FROM content WHERE id = ?"
        if not include_deleted:
            query += f" AND {_NOT_DELETED}"

        row = await self._fetchrow(query, content_id)
        if row is None:
            raise NotFoundError("content not found")
        return Content.from_row(row)

    async def find_active_by_id(self, content_id: str) -> Content:
        """Get content only if it is neither expired nor soft-deleted.

        Raises:
            NotFoundError: If missing, expired or deleted
        """
        row = await self._fetchrow(
            f"SELECT {_COLUMNS} FROM content "
            f"WHERE id = ? AND expires_at > {{now}} AND {_NOT_DELETED}",
            content_id,
        )
        if row is None:
            raise NotFoundError("content not found or expired")
        return Content.from_row(row)

    async def id_exists(self, content_id: str) -> bool:
        """Check whether an id is taken, including expired and deleted rows."""
        try:
            exists = await self.db.fetchval(
                "SELECT EXISTS(SELECT 1 FROM content WHERE id = ?)", content_id
            )
        except Exception as e:
            self.logger.error(f"Failed to check id existence for {content_id}: {e}")
            raise InternalError("database error", e) from e
        return bool(exists)

    async def increment_view_count(self, content_id: str, conn: Optional[QueryRunner] = None) -> bool:
        """Add one view. Best-effort: failures are logged, never raised.

        Returns:
            True if the update ran
        """
        runner = conn or self.db
        try:
            await runner.execute(
                "UPDATE content SET view_count = view_count + 1 WHERE id = ?", content_id
            )
            return True
        except Exception as e:
            self.logger.error(f"Failed to increment view count for {content_id}: {e}")
            return False

    async def list_all(self) -> List[Content]:
        """List all non-deleted content, newest first (admin)."""
        try:
            rows = await self.db.fetch(
                f"SELECT {_COLUMNS} FROM content WHERE {_NOT_DELETED} ORDER BY created_at DESC"
            )
        except Exception as e:
            self.logger.error(f"Failed to list content: {e}")
            raise InternalError("database error", e) from e

        contents = []
        for row in rows:
            try:
                contents.append(Content.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.error(f"Failed to decode content row {row.get('id')}: {e}")
                continue
        return contents

    async def find_expired_file_content(self, include_deleted: bool = False) -> List[Content]:
        """File rows whose expiry has passed.

        Args:
            include_deleted: Also return expired rows that were soft-deleted
        """
        query = f"SELECT {_COLUMNS} FROM content WHERE expires_at <= {{now}} AND kind = ?"
        if not include_deleted:
            query += f" AND {_NOT_DELETED}"

        try:
            rows = await self.db.fetch(query, ContentKind.FILE.value)
        except Exception as e:
            self.logger.error(f"Failed to find expired content: {e}")
            raise InternalError("database error", e) from e

        contents = []
        for row in rows:
            try:
                contents.append(Content.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.error(f"Failed to decode expired content row {row.get('id')}: {e}")
                continue
        return contents

    async def soft_delete(self, content_id: str, conn: Optional[QueryRunner] = None) -> None:
        """Mark content as deleted.

        Raises:
            NotFoundError: If no live row has this id
        """
        runner = conn or self.db
        try:
            affected = await runner.execute(
                "UPDATE content SET deleted_at = {now} WHERE id = ? AND deleted_at IS NULL",
                content_id,
            )
        except Exception as e:
            self.logger.error(f"Failed to soft delete content {content_id}: {e}")
            raise InternalError("failed to delete content", e) from e

        if affected == 0:
            raise NotFoundError("content not found")
        self.logger.info(f"Content soft deleted: {content_id}")

    async def delete_expired(self) -> int:
        """Permanently remove every expired row, whatever its kind.

        Returns:
            Number of rows deleted
        """
        try:
            count = await self.db.execute("DELETE FROM content WHERE expires_at <= {now}")
        except Exception as e:
            self.logger.error(f"Failed to delete expired content: {e}")
            raise InternalError("failed to delete expired content", e) from e

        self.logger.info(f"Expired content deleted: {count}")
        return count

    async def with_transaction(self, fn: Callable[[QueryRunner], Awaitable[T]]) -> T:
        """Run ``fn`` in one transaction.

        Commits only if ``fn`` returns; any exception from ``fn`` rolls back
        and propagates unchanged. Begin and commit failures raise InternalError.
        """
        fn_failed = False
        try:
            async with self.db.transaction() as tx:
                try:
                    return await fn(tx)
                except BaseException as e:
                    fn_failed = True
                    self.logger.warning(f"Rolling back transaction: {e!r}")
                    raise
        except Exception as e:
            if fn_failed or isinstance(e, AppError):
                raise
            self.logger.error(f"Transaction failed: {e}")
            raise InternalError("transaction failed", e) from e

    async def _fetchrow(self, query: str, *args: Any):
        try:
            return await self.db.fetchrow(query, *args)
        except Exception as e:
            self.logger.error(f"Failed to query content: {e}")
            raise InternalError("database error", e) from e

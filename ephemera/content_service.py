"""Business logic for uploaded files and notes."""

import logging
from datetime import timedelta
from typing import List, Optional

from .common.validators import file_extension, is_allowed_extension
from .counters import CounterUpdater
from .database.content_store import ContentStore
from .database.models import Content, ContentKind, ContentStats, utcnow
from .errors import (
    BadRequestError,
    ContentTooLargeError,
    DuplicateKeyError,
    FileTooLargeError,
    FileTypeNotAllowedError,
    InternalError,
    NotFoundError,
)
from .shortcode import ShortCodeGenerator, insert_with_unique_code
from .storage import FileStorage

MAX_NOTE_BYTES = 1024 * 1024


class ContentService:
    """Service layer for file and note sharing."""

    def __init__(
        self,
        store: ContentStore,
        storage: FileStorage,
        counters: CounterUpdater,
        generator: Optional[ShortCodeGenerator] = None,
        expiration_days: int = 7,
        max_file_size: int = 50 * 1024 * 1024,
        max_collision_retries: int = 5,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize content service.

        Args:
            store: Content store
            storage: Backing file storage
            counters: Background counter updater
            generator: Optional id generator
            expiration_days: Retention window of new content
            max_file_size: Largest accepted upload in bytes
            max_collision_retries: Id generation budget
            logger: Optional logger
        """
        self.store = store
        self.storage = storage
        self.counters = counters
        self.generator = generator or ShortCodeGenerator()
        self.retention = timedelta(days=expiration_days)
        self.max_file_size = max_file_size
        self.max_collision_retries = max_collision_retries
        self.logger = logger or logging.getLogger(__name__)

    async def upload_file(self, data: bytes, filename: str, size: Optional[int] = None) -> Content:
        """Store an uploaded file.

        The file is written as ``<id><ext>`` before the row is inserted and
        removed again if the insert fails.

        Args:
            data: File contents
            filename: Original file name
            size: Declared size in bytes (defaults to ``len(data)``)

        Raises:
            FileTooLargeError: If the file exceeds the size limit
            FileTypeNotAllowedError: If the extension is not allowed
            InternalError: If the file or the row cannot be saved
        """
        size = len(data) if size is None else size
        self.check_upload_size(size)

        if not is_allowed_extension(filename):
            self.logger.warning(f"File type not allowed: {filename}")
            raise FileTypeNotAllowedError()

        ext = file_extension(filename)

        async def _insert(content_id: str) -> Content:
            try:
                path = await self.storage.save(content_id + ext, data)
            except FileExistsError as e:
                # Existing files belong to another upload and are never overwritten.
                self.logger.warning(f"Backing file for {content_id} already exists")
                raise DuplicateKeyError(f"file already exists for {content_id}", e) from e
            except OSError as e:
                self.logger.error(f"Failed to save file for {content_id}: {e}")
                raise InternalError("failed to save file", e) from e

            created_at = utcnow()
            content = Content(
                id=content_id,
                kind=ContentKind.FILE,
                filename=filename,
                storage_path=path,
                size=size,
                created_at=created_at,
                expires_at=created_at + self.retention,
            )
            try:
                return await self.store.create(content)
            except Exception:
                await self._discard_file(path)
                raise

        content = await self._create(_insert)
        self.logger.info(f"File uploaded: {content.id} ({filename}, {size} bytes)")
        return content

    def check_upload_size(self, size: int) -> None:
        """Reject uploads above the size limit.

        Raises:
            FileTooLargeError: If ``size`` exceeds the limit
        """
        if size > self.max_file_size:
            self.logger.warning(f"File size {size} exceeds limit {self.max_file_size}")
            raise FileTooLargeError(self.max_file_size)

    async def create_note(self, body: str, title: Optional[str] = None) -> Content:
        """Store a text note.

        Raises:
            BadRequestError: If the body is empty
            ContentTooLargeError: If the body exceeds 1 MiB
        """
        if not body:
            raise BadRequestError("content is required")
        if len(body.encode("utf-8")) > MAX_NOTE_BYTES:
            self.logger.warning("Note content too large")
            raise ContentTooLargeError()

        async def _insert(content_id: str) -> Content:
            created_at = utcnow()
            content = Content(
                id=content_id,
                kind=ContentKind.NOTE,
                title=title or None,
                body=body,
                created_at=created_at,
                expires_at=created_at + self.retention,
            )
            return await self.store.create(content)

        content = await self._create(_insert)
        self.logger.info(f"Note created: {content.id}")
        return content

    async def get_content(self, content_id: str) -> Content:
        """Get active content and count the view in the background.

        Raises:
            NotFoundError: If missing, expired or deleted
        """
        if not self.generator.is_valid_format(content_id):
            raise NotFoundError("content not found or expired")
        content = await self.store.find_active_by_id(content_id)
        self.counters.submit(
            self.store.increment_view_count, content_id, description=f"view {content_id}"
        )
        return content

    async def get_stats(self, content_id: str) -> ContentStats:
        content = await self.store.find_by_id(content_id)
        return ContentStats(
            view_count=content.view_count,
            created_at=content.created_at,
            expires_at=content.expires_at,
        )

    async def list_all(self) -> List[Content]:
        return await self.store.list_all()

    async def delete_content(self, content_id: str) -> None:
        await self.store.soft_delete(content_id)

    async def _create(self, insert) -> Content:
        return await insert_with_unique_code(
            self.generator.generate_content_id,
            self.store.id_exists,
            insert,
            max_attempts=self.max_collision_retries,
            logger=self.logger,
        )

    async def _discard_file(self, path: str) -> None:
        try:
            await self.storage.delete(path)
        except OSError as e:
            self.logger.error(f"Failed to remove file {path} after failed insert: {e}")

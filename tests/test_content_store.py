"""Tests for content persistence and lifecycle."""

from datetime import timedelta

import pytest

from ephemera.database.models import Content, ContentKind, Lifecycle, utcnow
from ephemera.errors import DuplicateKeyError, InternalError, NotFoundError


def make_note(content_id, days_left=7, body="hello", created_ago=0):
    created_at = utcnow() - timedelta(days=created_ago)
    return Content(
        id=content_id,
        kind=ContentKind.NOTE,
        body=body,
        created_at=created_at,
        expires_at=utcnow() + timedelta(days=days_left),
    )


def make_file(content_id, path, days_left=7, size=4):
    return Content(
        id=content_id,
        kind=ContentKind.FILE,
        filename="report.txt",
        storage_path=path,
        size=size,
        created_at=utcnow(),
        expires_at=utcnow() + timedelta(days=days_left),
    )


@pytest.mark.asyncio
class TestContentStore:
    """Test ContentStore operations."""

    async def test_create_and_find(self, content_store):
        """Test creating a note and reading it back."""
        await content_store.create(make_note("note0001", body="hi there"))

        found = await content_store.find_by_id("note0001")

        assert found.kind is ContentKind.NOTE
        assert found.body == "hi there"
        assert found.view_count == 0
        assert found.deleted_at is None
        assert found.created_at is not None
        assert found.expires_at > utcnow()

    async def test_create_file(self, content_store):
        await content_store.create(make_file("file0001", "/tmp/file0001.txt", size=1234))

        found = await content_store.find_active_by_id("file0001")

        assert found.kind is ContentKind.FILE
        assert found.filename == "report.txt"
        assert found.storage_path == "/tmp/file0001.txt"
        assert found.size == 1234
        assert found.body is None

    async def test_duplicate_id(self, content_store):
        """A second insert with the same id hits the unique constraint."""
        await content_store.create(make_note("dup00001"))

        with pytest.raises(DuplicateKeyError):
            await content_store.create(make_note("dup00001"))

    async def test_invalid_record_rejected(self, content_store):
        """Mixing note and file fields is refused before touching the database."""
        content = make_note("bad00001")
        content.filename = "x.txt"

        with pytest.raises(InternalError):
            await content_store.create(content)
        assert not await content_store.id_exists("bad00001")

    async def test_find_missing(self, content_store):
        with pytest.raises(NotFoundError) as exc_info:
            await content_store.find_by_id("missing1")
        assert exc_info.value.message == "content not found"

    async def test_find_active_excludes_expired(self, content_store):
        """Expired content is hidden from active lookups but still readable by id."""
        await content_store.create(make_note("old00001", days_left=-1, created_ago=8))

        with pytest.raises(NotFoundError) as exc_info:
            await content_store.find_active_by_id("old00001")
        assert exc_info.value.message == "content not found or expired"

        found = await content_store.find_by_id("old00001")
        assert found.lifecycle() is Lifecycle.EXPIRED

    async def test_id_exists(self, content_store):
        await content_store.create(make_note("exist001", days_left=-1))

        assert await content_store.id_exists("exist001")
        assert not await content_store.id_exists("nothere1")

    async def test_increment_view_count(self, content_store):
        await content_store.create(make_note("views001"))

        assert await content_store.increment_view_count("views001") is True
        assert await content_store.increment_view_count("views001") is True

        found = await content_store.find_by_id("views001")
        assert found.view_count == 2

    async def test_soft_delete(self, content_store):
        """Soft-deleted content disappears from lookups but keeps its id."""
        await content_store.create(make_note("del00001"))

        await content_store.soft_delete("del00001")

        with pytest.raises(NotFoundError):
            await content_store.find_by_id("del00001")
        with pytest.raises(NotFoundError):
            await content_store.find_active_by_id("del00001")

        deleted = await content_store.find_by_id("del00001", include_deleted=True)
        assert deleted.deleted_at is not None
        assert await content_store.id_exists("del00001")

    async def test_soft_delete_twice(self, content_store):
        await content_store.create(make_note("del00002"))
        await content_store.soft_delete("del00002")

        with pytest.raises(NotFoundError):
            await content_store.soft_delete("del00002")

    async def test_soft_delete_missing(self, content_store):
        with pytest.raises(NotFoundError):
            await content_store.soft_delete("missing2")

    async def test_list_all(self, content_store):
        """Listing is newest first and skips deleted rows."""
        await content_store.create(make_note("list0001", created_ago=2))
        await content_store.create(make_note("list0002", created_ago=1))
        await content_store.create(make_note("list0003"))
        await content_store.soft_delete("list0002")

        ids = [c.id for c in await content_store.list_all()]

        assert ids == ["list0003", "list0001"]

    async def test_find_expired_file_content(self, content_store):
        """Only expired files are returned; deleted ones only on request."""
        await content_store.create(make_file("exp00001", "/tmp/a", days_left=-1))
        await content_store.create(make_file("exp00002", "/tmp/b", days_left=-1))
        await content_store.create(make_file("live0001", "/tmp/c"))
        await content_store.create(make_note("expnote1", days_left=-1))
        await content_store.soft_delete("exp00002")

        expired = await content_store.find_expired_file_content()
        assert [c.id for c in expired] == ["exp00001"]

        with_deleted = await content_store.find_expired_file_content(include_deleted=True)
        assert sorted(c.id for c in with_deleted) == ["exp00001", "exp00002"]

    async def test_delete_expired(self, content_store):
        """Expired rows of every kind are purged; live rows stay."""
        await content_store.create(make_file("exp00003", "/tmp/d", days_left=-1))
        await content_store.create(make_note("expnote2", days_left=-1))
        await content_store.create(make_note("live0002"))

        assert await content_store.delete_expired() == 2
        assert await content_store.delete_expired() == 0

        assert not await content_store.id_exists("exp00003")
        assert not await content_store.id_exists("expnote2")
        assert await content_store.id_exists("live0002")


@pytest.mark.asyncio
class TestContentTransactions:
    """Test with_transaction."""

    async def test_commit(self, content_store):
        async def work(tx):
            await content_store.create(make_note("tx000001"), conn=tx)
            await content_store.create(make_note("tx000002"), conn=tx)
            return "done"

        assert await content_store.with_transaction(work) == "done"
        assert await content_store.id_exists("tx000001")
        assert await content_store.id_exists("tx000002")

    async def test_rollback_propagates_error(self, content_store):
        """The callback's own exception comes back unchanged."""

        async def work(tx):
            await content_store.create(make_note("tx000003"), conn=tx)
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await content_store.with_transaction(work)

        assert not await content_store.id_exists("tx000003")

    async def test_rollback_on_app_error(self, content_store):
        await content_store.create(make_note("tx000004"))

        async def work(tx):
            await content_store.create(make_note("tx000005"), conn=tx)
            await content_store.create(make_note("tx000004"), conn=tx)

        with pytest.raises(DuplicateKeyError):
            await content_store.with_transaction(work)

        assert not await content_store.id_exists("tx000005")

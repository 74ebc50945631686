"""Tests for shortened URL persistence and click analytics."""

from datetime import timedelta

import pytest

from ephemera.database.models import Lifecycle, ShortenedURL, URLClick, utcnow
from ephemera.errors import DuplicateKeyError, NotFoundError


@pytest.mark.asyncio
class TestURLStore:
    """Test URLStore operations."""

    async def test_create_fills_generated_fields(self, url_store):
        record = await url_store.create(ShortenedURL(short_code="abc123", original_url="https://example.com"))

        assert record.id is not None
        assert record.created_at is not None
        assert record.click_count == 0

        found = await url_store.find_by_short_code("abc123")
        assert found.id == record.id
        assert found.original_url == "https://example.com"
        assert found.expires_at is None
        assert found.custom_alias is None

    async def test_custom_alias_stored(self, url_store):
        await url_store.create(
            ShortenedURL(short_code="mylink", original_url="https://example.com", custom_alias="mylink")
        )

        found = await url_store.find_active_by_short_code("mylink")
        assert found.custom_alias == "mylink"

    async def test_duplicate_short_code(self, url_store):
        await url_store.create(ShortenedURL(short_code="dup123", original_url="https://a.example"))

        with pytest.raises(DuplicateKeyError):
            await url_store.create(ShortenedURL(short_code="dup123", original_url="https://b.example"))

    async def test_ids_increase(self, url_store, sample_urls):
        records = [
            await url_store.create(ShortenedURL(short_code=f"code{i}", original_url=url))
            for i, url in enumerate(sample_urls)
        ]
        ids = [r.id for r in records]

        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    async def test_not_found(self, url_store):
        with pytest.raises(NotFoundError) as exc_info:
            await url_store.find_by_short_code("nope00")
        assert exc_info.value.message == "short URL not found"

    async def test_expired_hidden_from_active_lookup(self, url_store):
        """Expired links are still found for stats but never redirect."""
        await url_store.create(
            ShortenedURL(
                short_code="old123",
                original_url="https://example.com",
                expires_at=utcnow() - timedelta(days=1),
            )
        )

        with pytest.raises(NotFoundError) as exc_info:
            await url_store.find_active_by_short_code("old123")
        assert exc_info.value.message == "short URL not found or expired"

        found = await url_store.find_by_short_code("old123")
        assert found.expires_at < utcnow()

    async def test_future_expiry_is_active(self, url_store):
        await url_store.create(
            ShortenedURL(
                short_code="new123",
                original_url="https://example.com",
                expires_at=utcnow() + timedelta(days=1),
            )
        )

        found = await url_store.find_active_by_short_code("new123")
        assert found.lifecycle() is Lifecycle.ACTIVE

    async def test_short_code_exists_includes_deleted(self, url_store):
        record = await url_store.create(ShortenedURL(short_code="gone12", original_url="https://example.com"))
        await url_store.soft_delete(record.id)

        assert await url_store.short_code_exists("gone12")
        assert not await url_store.short_code_exists("never1")

    async def test_soft_delete(self, url_store):
        record = await url_store.create(ShortenedURL(short_code="del123", original_url="https://example.com"))

        await url_store.soft_delete(record.id)

        with pytest.raises(NotFoundError):
            await url_store.find_by_short_code("del123")
        with pytest.raises(NotFoundError):
            await url_store.find_active_by_short_code("del123")
        with pytest.raises(NotFoundError):
            await url_store.soft_delete(record.id)

    async def test_increment_click_count(self, url_store):
        record = await url_store.create(ShortenedURL(short_code="clk123", original_url="https://example.com"))

        for _ in range(3):
            assert await url_store.increment_click_count(record.id) is True

        found = await url_store.find_by_short_code("clk123")
        assert found.click_count == 3


@pytest.mark.asyncio
class TestURLClicks:
    """Test click recording."""

    async def test_record_and_read_clicks(self, url_store):
        record = await url_store.create(ShortenedURL(short_code="an1234", original_url="https://example.com"))

        await url_store.record_click(
            URLClick(url_id=record.id, ip_address="10.0.0.1", user_agent="curl/8", referrer="https://ref.example")
        )

        clicks = await url_store.get_recent_clicks(record.id)

        assert len(clicks) == 1
        assert clicks[0].url_id == record.id
        assert clicks[0].ip_address == "10.0.0.1"
        assert clicks[0].user_agent == "curl/8"
        assert clicks[0].referrer == "https://ref.example"
        assert clicks[0].clicked_at is not None

    async def test_recent_clicks_newest_first_and_limited(self, url_store):
        record = await url_store.create(ShortenedURL(short_code="an5678", original_url="https://example.com"))
        for i in range(5):
            await url_store.record_click(URLClick(url_id=record.id, ip_address=f"10.0.0.{i}"))

        clicks = await url_store.get_recent_clicks(record.id, limit=3)

        assert [c.ip_address for c in clicks] == ["10.0.0.4", "10.0.0.3", "10.0.0.2"]

    async def test_clicks_scoped_to_url(self, url_store):
        first = await url_store.create(ShortenedURL(short_code="one123", original_url="https://a.example"))
        second = await url_store.create(ShortenedURL(short_code="two123", original_url="https://b.example"))
        await url_store.record_click(URLClick(url_id=first.id))

        assert await url_store.get_recent_clicks(second.id) == []

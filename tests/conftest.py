"""Pytest configuration and fixtures.

Store, service and API tests run against SQLite. They also run against
PostgreSQL when EPHEMERA_TEST_POSTGRES_URL is set.
"""

import os
from typing import AsyncGenerator

import pytest

from ephemera.common.logging_config import setup_logging
from ephemera.content_service import ContentService
from ephemera.counters import CounterUpdater
from ephemera.database import ContentStore, Database, URLStore
from ephemera.database.sqlite import SQLiteDatabase
from ephemera.shortcode import ShortCodeGenerator
from ephemera.storage import FileStorage
from ephemera.sweeper import ExpirySweeper
from ephemera.url_service import URLService

POSTGRES_URL_ENV = "EPHEMERA_TEST_POSTGRES_URL"


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture(params=["sqlite", "postgres"])
async def database(request, tmp_path, logger) -> AsyncGenerator[Database, None]:
    """Migrated, empty database of each supported backend."""
    if request.param == "postgres":
        url = os.environ.get(POSTGRES_URL_ENV)
        if not url:
            pytest.skip(f"{POSTGRES_URL_ENV} not set")
        from ephemera.database.postgres import PostgresDatabase

        db = PostgresDatabase(url, max_connections=5, max_idle_connections=1, logger=logger)
        await db.connect()
        await db.run_migrations()
        await db.execute("TRUNCATE url_clicks, shortened_urls, content RESTART IDENTITY CASCADE")
    else:
        db = SQLiteDatabase(str(tmp_path / "test.db"), max_connections=4, logger=logger)
        await db.connect()
        await db.run_migrations()

    yield db

    await db.close()


@pytest.fixture
def content_store(database, logger) -> ContentStore:
    return ContentStore(database, logger=logger)


@pytest.fixture
def url_store(database, logger) -> URLStore:
    return URLStore(database, logger=logger)


@pytest.fixture
def storage(tmp_path, logger) -> FileStorage:
    storage = FileStorage(str(tmp_path / "uploads"), logger=logger)
    storage.ensure_directory()
    return storage


@pytest.fixture
async def counters(logger) -> AsyncGenerator[CounterUpdater, None]:
    """Running counter updater; call ``await counters.join()`` to settle."""
    updater = CounterUpdater(max_queue_size=100, workers=2, logger=logger)
    updater.start()
    yield updater
    await updater.stop()


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator()


@pytest.fixture
def content_service(content_store, storage, counters, short_code_generator, logger) -> ContentService:
    return ContentService(
        content_store,
        storage,
        counters,
        generator=short_code_generator,
        expiration_days=7,
        max_file_size=1024 * 1024,
        logger=logger,
    )


@pytest.fixture
def url_service(url_store, counters, short_code_generator, logger) -> URLService:
    return URLService(
        url_store,
        counters,
        generator=short_code_generator,
        base_url="http://testserver",
        logger=logger,
    )


@pytest.fixture
def sweeper(content_store, storage, logger) -> ExpirySweeper:
    return ExpirySweeper(content_store, storage, interval_seconds=3600, logger=logger)


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


class ScriptedGenerator(ShortCodeGenerator):
    """Generator returning a fixed sequence of ids and codes."""

    def __init__(self, codes):
        super().__init__()
        self._codes = iter(codes)

    def generate_content_id(self) -> str:
        return next(self._codes)

    def generate_short_code(self) -> str:
        return next(self._codes)


@pytest.fixture
def scripted_generator():
    """Factory for generators with predetermined output."""
    return ScriptedGenerator

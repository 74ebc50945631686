"""Wiring of database, stores, services and background workers."""

import logging
from dataclasses import dataclass
from typing import Optional

from .content_service import ContentService
from .counters import CounterUpdater
from .database import ContentStore, Database, URLStore, create_database
from .shortcode import ShortCodeGenerator
from .storage import FileStorage
from .sweeper import ExpirySweeper
from .url_service import URLService


@dataclass
class Components:
    db: Database
    storage: FileStorage
    counters: CounterUpdater
    content_service: ContentService
    url_service: URLService
    sweeper: ExpirySweeper

    async def close(self) -> None:
        """Stop background workers, then close the database."""
        await self.sweeper.stop()
        await self.counters.stop()
        await self.db.close()


async def build_components(
    config,
    logger: Optional[logging.Logger] = None,
    start_background: bool = True,
) -> Components:
    """Connect to the database and build every component from ``config``.

    Args:
        config: Configuration instance
        logger: Optional logger instance
        start_background: Start the counter updater and the expiry sweeper

    Raises:
        Exception: If the database cannot be reached or migrated, or the
            upload directory cannot be created
    """
    logger = logger or logging.getLogger("ephemera")

    db = create_database(
        database_url=config.database_url,
        db_path=config.db_path,
        max_connections=config.db_max_connections,
        max_idle_connections=config.db_max_idle_conns,
        connection_timeout_seconds=config.db_connection_timeout_seconds,
        logger=logger,
    )
    try:
        await db.connect()
        await db.run_migrations()

        storage = FileStorage(config.upload_dir, logger=logger)
        storage.ensure_directory()
    except BaseException:
        await db.close()
        raise

    counters = CounterUpdater(
        max_queue_size=config.counter_queue_size,
        workers=config.counter_workers,
        logger=logger,
    )
    generator = ShortCodeGenerator()
    content_store = ContentStore(db, logger=logger)
    url_store = URLStore(db, logger=logger)

    content_service = ContentService(
        content_store,
        storage,
        counters,
        generator=generator,
        expiration_days=config.expiration_days,
        max_file_size=config.max_file_size,
        max_collision_retries=config.max_collision_retries,
        logger=logger,
    )
    url_service = URLService(
        url_store,
        counters,
        generator=generator,
        base_url=config.base_url,
        max_collision_retries=config.max_collision_retries,
        logger=logger,
    )
    sweeper = ExpirySweeper(
        content_store,
        storage,
        interval_seconds=config.sweep_interval_seconds,
        logger=logger,
    )

    if start_background:
        counters.start()
        sweeper.start()

    return Components(
        db=db,
        storage=storage,
        counters=counters,
        content_service=content_service,
        url_service=url_service,
        sweeper=sweeper,
    )

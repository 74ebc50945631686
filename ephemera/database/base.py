"""Abstract base classes for ephemera database backends."""

import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional

from .dialects import Dialect


class QueryRunner(ABC):
    """Executes dialect-neutral queries.

    Implemented by a Database (one pooled connection per call) and by the
    transaction handle a Database yields, so store code is identical inside
    and outside a transaction.
    """

    dialect: Dialect

    @abstractmethod
    async def execute(self, query: str, *args: Any) -> int:
        """Execute a statement.

        Returns:
            Number of rows affected
        """

    @abstractmethod
    async def fetchrow(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        """Fetch the first row of a query, or None."""

    @abstractmethod
    async def fetch(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        """Fetch all rows of a query."""

    @abstractmethod
    async def insert_returning(self, query: str, *args: Any) -> Dict[str, Any]:
        """Run an INSERT and return the generated ``id`` and ``created_at``.

        Backends with RETURNING support fetch both in one round trip; others
        use the last inserted row id and a locally computed timestamp.
        """

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Fetch the first column of the first row, or None."""
        row = await self.fetchrow(query, *args)
        if row is None:
            return None
        return next(iter(row.values()))


class Database(QueryRunner):
    """Abstract base class for a database backend."""

    def __init__(self, db_config: str, dialect: Dialect, logger: Optional[logging.Logger] = None):
        """Initialize database.

        Args:
            db_config: Connection string or file path
            dialect: SQL dialect of this backend
            logger: Optional logger instance
        """
        self.db_config = db_config
        self.dialect = dialect
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection pool and verify connectivity.

        Raises:
            Exception: If the database cannot be reached
        """

    @abstractmethod
    def transaction(self) -> AsyncContextManager[QueryRunner]:
        """Scoped unit of work.

        Commits when the block exits normally, rolls back on any exception
        (including cancellation) and re-raises it.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close database connections."""

    async def health_check(self) -> bool:
        """Check if database is healthy.

        Returns:
            True if healthy, False otherwise
        """
        try:
            await self.fetchval("SELECT 1")
            return True
        except Exception as e:
            self.logger.error(f"Health check failed: {e}")
            return False

    async def run_migrations(self) -> None:
        """Create tables and indexes if they don't exist."""
        self.logger.info(f"Running {self.dialect.name} database migrations")
        for statement in self.dialect.schema_statements():
            try:
                await self.execute(statement)
            except Exception as e:
                self.logger.error(f"Failed to execute migration: {e}")
                raise
        self.logger.info("Database migrations completed successfully")

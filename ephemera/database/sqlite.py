"""SQLite implementation of the ephemera database layer.

sqlite3 is blocking, so every call runs on a bounded thread pool owned by the
database; its size is the maximum number of concurrently open connections.
"""

import asyncio
import functools
import logging
import os
import sqlite3
from contextlib import asynccontextmanager, closing
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import DuplicateKeyError
from .base import Database, QueryRunner
from .dialects import SQLiteDialect
from .models import utcnow


def _execute(conn: sqlite3.Connection, query: str, params: Tuple[Any, ...]) -> int:
    cursor = conn.execute(query, params)
    return max(cursor.rowcount, 0)


def _fetchrow(conn: sqlite3.Connection, query: str, params: Tuple[Any, ...]) -> Optional[Dict[str, Any]]:
    row = conn.execute(query, params).fetchone()
    return dict(row) if row is not None else None


def _fetch(conn: sqlite3.Connection, query: str, params: Tuple[Any, ...]) -> List[Dict[str, Any]]:
    return [dict(row) for row in conn.execute(query, params).fetchall()]


def _insert(conn: sqlite3.Connection, query: str, params: Tuple[Any, ...]) -> int:
    return conn.execute(query, params).lastrowid


class _SQLiteRunner(QueryRunner):
    """Query methods shared by the database and its transactions."""

    dialect = SQLiteDialect()

    async def _call(self, op: Callable, query: str, params: Tuple[Any, ...]) -> Any:
        raise NotImplementedError

    async def _dispatch(self, op: Callable, query: str, args: Tuple[Any, ...]) -> Any:
        sql = self.dialect.render(query)
        params = self.dialect.adapt_params(args)
        try:
            return await self._call(op, sql, params)
        except sqlite3.IntegrityError as e:
            if "UNIQUE constraint failed" in str(e):
                raise DuplicateKeyError(str(e), e) from e
            raise

    async def execute(self, query: str, *args: Any) -> int:
        return await self._dispatch(_execute, query, args)

    async def fetchrow(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        return await self._dispatch(_fetchrow, query, args)

    async def fetch(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        return await self._dispatch(_fetch, query, args)

    async def insert_returning(self, query: str, *args: Any) -> Dict[str, Any]:
        # No RETURNING: take the rowid, and stamp created_at locally.
        row_id = await self._dispatch(_insert, query, args)
        return {"id": row_id, "created_at": utcnow()}


class _SQLiteTransaction(_SQLiteRunner):
    """Runner bound to one connection with an open transaction."""

    def __init__(self, database: "SQLiteDatabase", conn: sqlite3.Connection):
        self._database = database
        self._conn = conn

    async def _call(self, op: Callable, query: str, params: Tuple[Any, ...]) -> Any:
        return await self._database._run(op, self._conn, query, params)


class SQLiteDatabase(_SQLiteRunner, Database):
    """SQLite database backend."""

    def __init__(
        self,
        db_path: str,
        max_connections: int = 25,
        busy_timeout_seconds: int = 30,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize SQLite database.

        Args:
            db_path: Path of the database file (``:memory:`` is not supported,
                every operation opens its own connection)
            max_connections: Maximum number of concurrently open connections
            busy_timeout_seconds: How long to wait on a locked database
            logger: Optional logger instance
        """
        Database.__init__(self, db_path, SQLiteDialect(), logger)
        self.db_path = db_path
        self.max_connections = max_connections
        self.busy_timeout_seconds = busy_timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_connections,
            thread_name_prefix="ephemera-sqlite",
        )

    def _connect(self) -> sqlite3.Connection:
        # Autocommit; transactions are opened explicitly with BEGIN.
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout_seconds,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def _run(self, fn: Callable, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    def _with_connection(self, op: Callable, query: str, params: Tuple[Any, ...]) -> Any:
        with closing(self._connect()) as conn:
            return op(conn, query, params)

    async def _call(self, op: Callable, query: str, params: Tuple[Any, ...]) -> Any:
        return await self._run(self._with_connection, op, query, params)

    async def connect(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.db_path))
        os.makedirs(directory, exist_ok=True)

        def _open() -> None:
            with closing(self._connect()) as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("SELECT 1")

        await self._run(_open)
        self.logger.info(f"Opened sqlite database at {self.db_path}")

    @asynccontextmanager
    async def transaction(self):
        conn = await self._run(self._connect)
        try:
            await self._run(conn.execute, "BEGIN")
            try:
                yield _SQLiteTransaction(self, conn)
            except BaseException:
                try:
                    await self._run(conn.execute, "ROLLBACK")
                except sqlite3.Error as rb_error:
                    self.logger.error(f"Failed to rollback transaction: {rb_error}")
                raise
            await self._run(conn.execute, "COMMIT")
        finally:
            await self._run(conn.close)

    async def close(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._executor.shutdown)
        self.logger.debug("Closed sqlite executor")

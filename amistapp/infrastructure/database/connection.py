# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential store access using SQLAlchemy async.

The credential store holds identities (``users``), their role extensions
(``teachers``, ``tutors``, ``students``) and the migration bookkeeping table.
This module wraps the async engine with a small typed query interface and a
transaction scope. Rows come back as plain dicts; the domain layer turns them
into typed records.

Example:
    from amistapp.infrastructure.database.connection import create_store

    store = create_store(settings)

    row = await store.query_one(
        "SELECT id, email FROM users WHERE email = :email",
        {"email": "a@b.com"},
    )

    async with store.transaction() as tx:
        result = await tx.execute("INSERT INTO users (...) VALUES (...)", {...})
        await tx.execute("INSERT INTO students (user_id) VALUES (:id)", {"id": result.lastrowid})
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, Mapping, Optional, TypeVar

from sqlalchemy import event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from amistapp.core.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = Optional[Mapping[str, Any]]

_UNIQUE_VIOLATION_SQLSTATE = "23505"


class DatabaseError(Exception):
    """Base exception for store operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or driver error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class ConflictError(DatabaseError):
    """Raised when a write violates a uniqueness constraint."""


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a write statement.

    Attributes:
        rowcount: Number of rows affected.
        lastrowid: Id of the last inserted row, when the driver reports one.
    """

    rowcount: int
    lastrowid: Optional[int]


def _is_unique_violation(error: IntegrityError) -> bool:
    original = error.orig
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == _UNIQUE_VIOLATION_SQLSTATE:
        return True
    return "UNIQUE constraint failed" in str(original)


def _translate_error(error: SQLAlchemyError) -> DatabaseError:
    """Map a SQLAlchemy error onto the store's exception types."""
    if isinstance(error, IntegrityError) and _is_unique_violation(error):
        return ConflictError("Unique constraint violated", error)
    return DatabaseError("Database operation failed", error)


async def _execute(conn: AsyncConnection, sql: str, params: Params) -> ExecResult:
    try:
        result = await conn.execute(text(sql), dict(params or {}))
    except SQLAlchemyError as e:
        raise _translate_error(e) from e
    return ExecResult(rowcount=result.rowcount, lastrowid=result.lastrowid)


async def _query_one(conn: AsyncConnection, sql: str, params: Params) -> Optional[dict[str, Any]]:
    try:
        result = await conn.execute(text(sql), dict(params or {}))
        row = result.mappings().first()
    except SQLAlchemyError as e:
        raise _translate_error(e) from e
    return dict(row) if row is not None else None


async def _query_many(conn: AsyncConnection, sql: str, params: Params) -> list[dict[str, Any]]:
    try:
        result = await conn.execute(text(sql), dict(params or {}))
        rows = result.mappings().all()
    except SQLAlchemyError as e:
        raise _translate_error(e) from e
    return [dict(row) for row in rows]


class StoreTransaction:
    """Query interface bound to one connection inside an open transaction."""

    def __init__(self, connection: AsyncConnection) -> None:
        self._connection = connection

    async def execute(self, sql: str, params: Params = None) -> ExecResult:
        """Execute a write statement within the transaction."""
        return await _execute(self._connection, sql, params)

    async def query_one(self, sql: str, params: Params = None) -> Optional[dict[str, Any]]:
        """Fetch the first row of a query within the transaction."""
        return await _query_one(self._connection, sql, params)

    async def query_many(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        """Fetch all rows of a query within the transaction."""
        return await _query_many(self._connection, sql, params)


class CredentialStore:
    """Typed query and transaction interface over the relational store.

    Standalone ``execute`` calls run in their own short transaction.
    Multi-statement writes that must be atomic go through ``transaction()``
    or ``with_transaction()``.

    Attributes:
        engine: The SQLAlchemy async engine.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize the store.

        Args:
            engine: Async engine connected to the credential database.
        """
        self.engine = engine

    async def execute(self, sql: str, params: Params = None) -> ExecResult:
        """Execute a write statement and commit it.

        Args:
            sql: SQL text with ``:name`` placeholders.
            params: Bound parameter values.

        Returns:
            Affected row count and last inserted id.

        Raises:
            ConflictError: If a uniqueness constraint is violated.
            DatabaseError: If the statement fails for any other reason.
        """
        async with self.transaction() as tx:
            return await tx.execute(sql, params)

    async def query_one(self, sql: str, params: Params = None) -> Optional[dict[str, Any]]:
        """Fetch a single row.

        Returns:
            The first row as a dict, or None if the query matched nothing.

        Raises:
            DatabaseError: If the query fails.
        """
        async with self._connect() as conn:
            return await _query_one(conn, sql, params)

    async def query_many(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        """Fetch all rows of a query.

        Raises:
            DatabaseError: If the query fails.
        """
        async with self._connect() as conn:
            return await _query_many(conn, sql, params)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StoreTransaction]:
        """Open a transaction scope.

        Commits when the block exits normally. Any exception raised inside
        the block, including cancellation, rolls the transaction back and
        propagates unchanged.

        Yields:
            A StoreTransaction bound to the transaction's connection.

        Raises:
            DatabaseError: If the transaction cannot be opened or committed.
        """
        try:
            async with self.engine.begin() as conn:
                yield StoreTransaction(conn)
        except SQLAlchemyError as e:
            raise _translate_error(e) from e

    async def with_transaction(self, fn: Callable[[StoreTransaction], Awaitable[T]]) -> T:
        """Run ``fn`` inside a transaction and return its result.

        Args:
            fn: Coroutine function receiving the open transaction.

        Returns:
            Whatever ``fn`` returns, after the transaction has committed.
        """
        async with self.transaction() as tx:
            return await fn(tx)

    async def ping(self) -> bool:
        """Check that the store answers a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            return False

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[AsyncConnection]:
        try:
            async with self.engine.connect() as conn:
                yield conn
        except SQLAlchemyError as e:
            raise _translate_error(e) from e


def _configure_sqlite(engine: AsyncEngine) -> None:
    """Enable foreign keys and transactional DDL on SQLite connections.

    The sqlite3 driver only opens a transaction before DML, so DDL inside a
    migration would otherwise autocommit. The driver's implicit BEGIN is
    disabled and an explicit one is emitted whenever SQLAlchemy begins.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def create_store(settings: "Settings") -> CredentialStore:
    """Create the credential store from application settings.

    Args:
        settings: Application settings containing database configuration.

    Returns:
        A CredentialStore bound to a new async engine.

    Raises:
        DatabaseError: If the engine cannot be created.
    """
    url = settings.database.url

    try:
        engine = create_async_engine(
            url,
            echo=settings.database.echo,
            pool_pre_ping=True,
        )
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e

    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)

    logger.info("Credential store configured: dialect=%s", engine.dialect.name)
    return CredentialStore(engine)

"""
Pooled MySQL access for the bot.

:class:`DatabaseManager` owns an aiomysql pool and acquires one connection per
call. :meth:`DatabaseManager.transaction` pins a single connection for a
block of statements, committing on success and rolling back on any exception.

Both expose the same generic helpers through :class:`QueryRunner`: raw
``query``/``execute`` plus CRUD shortcuts over a table name and column
mappings. Table and column names are validated before they are interpolated;
values always travel as driver parameters.

Driver errors are logged and re-raised as :mod:`naplesbot.database.errors`
types. Nothing here retries.
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Tuple

import aiomysql
import pymysql

from naplesbot.configuration.database_config import DatabaseSettings
from naplesbot.database.db_schema import SchemaManager
from naplesbot.database.errors import DatabaseError, InvalidIdentifierError, translate_error
from naplesbot.util.logger import get_logger

logger = get_logger("database")

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
ORDER_DIRECTIONS = {"ASC", "DESC"}

Row = Dict[str, Any]
Params = Optional[Sequence[Any]]


@dataclass(frozen=True, slots=True)
class ExecuteResult:
    affected_rows: int
    last_insert_id: Optional[int]


def quote_identifier(name: str) -> str:
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise InvalidIdentifierError(f"Invalid identifier: {name!r}")
    return f"`{name}`"


def build_order_by(order_by: str) -> str:
    """Validate ``"col"``, ``"col DESC"`` or a comma-separated list of those."""
    clauses = []
    for part in order_by.split(","):
        tokens = part.split()
        if not tokens or len(tokens) > 2:
            raise InvalidIdentifierError(f"Invalid ORDER BY clause: {order_by!r}")
        clause = quote_identifier(tokens[0])
        if len(tokens) == 2:
            direction = tokens[1].upper()
            if direction not in ORDER_DIRECTIONS:
                raise InvalidIdentifierError(f"Invalid ORDER BY direction: {tokens[1]!r}")
            clause = f"{clause} {direction}"
        clauses.append(clause)
    return ", ".join(clauses)


def build_where(conditions: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    """``{"a": 1, "b": None}`` becomes ``("`a` = %s AND `b` IS NULL", [1])``."""
    parts: List[str] = []
    params: List[Any] = []
    for column, value in conditions.items():
        if value is None:
            parts.append(f"{quote_identifier(column)} IS NULL")
        else:
            parts.append(f"{quote_identifier(column)} = %s")
            params.append(value)
    return " AND ".join(parts), params


def build_assignments(data: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    if not data:
        raise ValueError("No columns to write")
    columns = ", ".join(f"{quote_identifier(column)} = %s" for column in data)
    return columns, list(data.values())


class QueryRunner:
    """Generic helpers on top of ``query`` and ``execute``."""

    async def query(self, sql: str, params: Params = None) -> List[Row]:
        raise NotImplementedError

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        raise NotImplementedError

    async def fetch_one(self, sql: str, params: Params = None) -> Optional[Row]:
        rows = await self.query(sql, params)
        return rows[0] if rows else None

    async def create(self, table: str, data: Mapping[str, Any]) -> Optional[int]:
        """Insert one row and return its auto-increment id."""
        if not data:
            raise ValueError("No columns to insert")
        columns = ", ".join(quote_identifier(column) for column in data)
        placeholders = ", ".join(["%s"] * len(data))
        result = await self.execute(
            f"INSERT INTO {quote_identifier(table)} ({columns}) VALUES ({placeholders})",
            list(data.values()),
        )
        return result.last_insert_id

    async def find_by_id(self, table: str, row_id: Any, id_column: str = "id") -> Optional[Row]:
        return await self.fetch_one(
            f"SELECT * FROM {quote_identifier(table)} WHERE {quote_identifier(id_column)} = %s LIMIT 1",
            [row_id],
        )

    async def find_where(
        self,
        table: str,
        conditions: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        sql = f"SELECT * FROM {quote_identifier(table)}"
        params: List[Any] = []
        if conditions:
            where, params = build_where(conditions)
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {build_order_by(order_by)}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        return await self.query(sql, params)

    async def update(self, table: str, row_id: Any, data: Mapping[str, Any], id_column: str = "id") -> int:
        assignments, params = build_assignments(data)
        result = await self.execute(
            f"UPDATE {quote_identifier(table)} SET {assignments} WHERE {quote_identifier(id_column)} = %s",
            params + [row_id],
        )
        return result.affected_rows

    async def update_where(self, table: str, conditions: Mapping[str, Any], data: Mapping[str, Any]) -> int:
        if not conditions:
            raise ValueError("update_where requires at least one condition")
        assignments, params = build_assignments(data)
        where, where_params = build_where(conditions)
        result = await self.execute(
            f"UPDATE {quote_identifier(table)} SET {assignments} WHERE {where}",
            params + where_params,
        )
        return result.affected_rows

    async def delete(self, table: str, row_id: Any, id_column: str = "id") -> int:
        result = await self.execute(
            f"DELETE FROM {quote_identifier(table)} WHERE {quote_identifier(id_column)} = %s",
            [row_id],
        )
        return result.affected_rows

    async def delete_where(self, table: str, conditions: Mapping[str, Any]) -> int:
        if not conditions:
            raise ValueError("delete_where requires at least one condition")
        where, params = build_where(conditions)
        result = await self.execute(f"DELETE FROM {quote_identifier(table)} WHERE {where}", params)
        return result.affected_rows

    async def count(self, table: str, conditions: Optional[Mapping[str, Any]] = None) -> int:
        sql = f"SELECT COUNT(*) AS total FROM {quote_identifier(table)}"
        params: List[Any] = []
        if conditions:
            where, params = build_where(conditions)
            sql += f" WHERE {where}"
        row = await self.fetch_one(sql, params)
        return int(row["total"]) if row else 0

    async def exists(self, table: str, conditions: Mapping[str, Any]) -> bool:
        where, params = build_where(conditions)
        row = await self.fetch_one(
            f"SELECT 1 AS found FROM {quote_identifier(table)} WHERE {where} LIMIT 1",
            params,
        )
        return row is not None


async def _run_query(conn: aiomysql.Connection, sql: str, params: Params) -> List[Row]:
    async with conn.cursor(aiomysql.DictCursor) as cur:
        await cur.execute(sql, params)
        rows = await cur.fetchall()
    return list(rows or [])


async def _run_execute(conn: aiomysql.Connection, sql: str, params: Params) -> ExecuteResult:
    async with conn.cursor() as cur:
        await cur.execute(sql, params)
        return ExecuteResult(affected_rows=cur.rowcount, last_insert_id=cur.lastrowid or None)


def _raise_translated(exc: pymysql.err.MySQLError, sql: str) -> None:
    error = translate_error(exc)
    logger.error("[DATABASE] %s (%s) while running: %s", error, error.category, sql)
    raise error from exc


class Transaction(QueryRunner):
    """Runner bound to one connection inside :meth:`DatabaseManager.transaction`."""

    def __init__(self, conn: aiomysql.Connection) -> None:
        self._conn = conn

    async def query(self, sql: str, params: Params = None) -> List[Row]:
        try:
            return await _run_query(self._conn, sql, params)
        except pymysql.err.MySQLError as exc:
            _raise_translated(exc, sql)

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        try:
            return await _run_execute(self._conn, sql, params)
        except pymysql.err.MySQLError as exc:
            _raise_translated(exc, sql)


class DatabaseManager(QueryRunner):
    """
    Owner of the aiomysql connection pool.

    Lifecycle:
        1. ``await manager.connect()`` (or :func:`initialize_database`)
        2. queries, CRUD helpers and transactions
        3. ``await manager.close()`` at shutdown
    """

    def __init__(self, settings: DatabaseSettings, pool: Optional[aiomysql.Pool] = None) -> None:
        self.settings = settings
        self._pool = pool

    @property
    def pool(self) -> aiomysql.Pool:
        if self._pool is None:
            raise DatabaseError("Database pool is not initialized")
        return self._pool

    async def connect(self) -> None:
        if self._pool is not None:
            logger.debug("[DATABASE] Pool already created, skipping")
            return
        try:
            self._pool = await aiomysql.create_pool(
                host=self.settings.host,
                port=self.settings.port,
                user=self.settings.user,
                password=self.settings.password,
                db=self.settings.database,
                minsize=1,
                maxsize=self.settings.connection_limit,
                charset=self.settings.charset,
                autocommit=True,
            )
        except pymysql.err.MySQLError as exc:
            _raise_translated(exc, "<connect>")
        logger.info(
            "[DATABASE] Pool created for %s@%s:%s/%s (max %d connections)",
            self.settings.user, self.settings.host, self.settings.port,
            self.settings.database, self.settings.connection_limit,
        )

    async def query(self, sql: str, params: Params = None) -> List[Row]:
        try:
            async with self.pool.acquire() as conn:
                return await _run_query(conn, sql, params)
        except pymysql.err.MySQLError as exc:
            _raise_translated(exc, sql)

    async def execute(self, sql: str, params: Params = None) -> ExecuteResult:
        try:
            async with self.pool.acquire() as conn:
                return await _run_execute(conn, sql, params)
        except pymysql.err.MySQLError as exc:
            _raise_translated(exc, sql)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """
        Pin one connection for a block of statements.

        Commits when the block exits cleanly, rolls back and re-raises on any
        exception. The connection always returns to the pool.
        """
        async with self.pool.acquire() as conn:
            await conn.begin()
            try:
                yield Transaction(conn)
            except BaseException:
                await conn.rollback()
                logger.debug("[DATABASE] Transaction rolled back")
                raise
            else:
                await conn.commit()

    async def test_connection(self) -> None:
        """Run ``SELECT 1``; raises a :class:`DatabaseError` if the server is unreachable."""
        await self.query("SELECT 1 AS ok")
        logger.info("[DATABASE] Connection test succeeded")

    def pool_stats(self) -> Dict[str, int]:
        if self._pool is None:
            return {"size": 0, "free": 0, "used": 0, "min": 0, "max": self.settings.connection_limit}
        return {
            "size": self._pool.size,
            "free": self._pool.freesize,
            "used": self._pool.size - self._pool.freesize,
            "min": self._pool.minsize,
            "max": self._pool.maxsize,
        }

    async def close(self) -> None:
        if self._pool is None:
            return
        self._pool.close()
        await self._pool.wait_closed()
        self._pool = None
        logger.info("[DATABASE] Pool closed")


async def initialize_database(settings: DatabaseSettings) -> DatabaseManager:
    """
    Validate settings, create the pool, check connectivity and create the schema.

    Raises:
        ConfigurationError: if the settings are invalid.
        DatabaseError: if the server cannot be reached or the schema fails.
    """
    settings.validate()
    manager = DatabaseManager(settings)
    await manager.connect()
    try:
        await manager.test_connection()
        await SchemaManager.initialize_schema(manager)
    except DatabaseError:
        await manager.close()
        raise
    return manager

"""
Async database access helpers (raw SQL) using asyncpg.

There is no pool: every request opens its own connection through
`connect()` and the connection is closed when the `async with` block exits,
whichever way it exits.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

All bound values arrive from a query string, so they are always `str`.
Statements are built by a callable that receives the placeholder format.
The statement is prepared once to learn the parameter types the server
inferred; every parameter that is not already a text type is then bound as
`$n::text::<type>`, so the server parses the value the way it parses a
literal (integers, arrays, bytea, ranges, ...).
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any, Callable

import asyncpg

Placeholder = Callable[[int], str]
StatementBuilder = Callable[[Placeholder], str]

# Parameter types asyncpg already encodes from str.
_TEXT_TYPES = frozenset({"text", "varchar", "bpchar", "name", "unknown"})


class DatabaseError(RuntimeError):
    pass


class ConnectionFailed(DatabaseError):
    pass


def dollar(index: int) -> str:
    return f"${index}"


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def text_cast(index: int, param_type: Any) -> str:
    """
    Placeholder for parameter `index` given asyncpg's `Type` for it.
    """
    if param_type.name in _TEXT_TYPES:
        return dollar(index)
    type_name = _quote_ident(param_type.name)
    if param_type.schema:
        type_name = f"{_quote_ident(param_type.schema)}.{type_name}"
    return f"${index}::text::{type_name}"


async def typed_statement(conn: asyncpg.Connection, build: StatementBuilder, args: Sequence[Any]) -> str:
    """
    Build the final statement text, casting parameters through text.
    """
    sql = build(dollar)
    if not args:
        return sql
    prepared = await conn.prepare(sql)
    param_types = prepared.get_parameters()
    return build(lambda index: text_cast(index, param_types[index - 1]))


@asynccontextmanager
async def connect(dsn: str) -> AsyncIterator[asyncpg.Connection]:
    """
    Open a fresh connection for one request and always close it.
    """
    try:
        conn = await asyncpg.connect(dsn=dsn)
    except (
        OSError,
        ValueError,
        asyncio.TimeoutError,
        asyncpg.PostgresError,
        asyncpg.InterfaceError,
    ) as exc:
        raise ConnectionFailed(f"Could not connect to database: {exc}") from exc

    try:
        yield conn
    finally:
        await conn.close()


def affected_count(status: str) -> int:
    """
    Row count from a command tag: "INSERT 0 3" -> 3, "DELETE 0" -> 0.
    """
    tail = (status or "").rsplit(" ", 1)[-1]
    if not tail.isdigit():
        raise DatabaseError(f"No row count in command status {status!r}.")
    return int(tail)


async def fetch_all(conn: asyncpg.Connection, build: StatementBuilder, *args: Any) -> list[asyncpg.Record]:
    """
    Run a query and return every row.
    """
    sql = await typed_statement(conn, build, args)
    return await conn.fetch(sql, *args)


async def execute(conn: asyncpg.Connection, build: StatementBuilder, *args: Any) -> int:
    """
    Run a statement (INSERT/UPDATE/DELETE) and return the affected row count.
    """
    sql = await typed_statement(conn, build, args)
    status = await conn.execute(sql, *args)
    return affected_count(status)

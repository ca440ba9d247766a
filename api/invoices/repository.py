"""
Invoice table persistence (raw SQL).

The table name and the `what` selector are placed into the statement text
as given; only values are bound. Column names supplied by the caller are
likewise written into the statement verbatim.
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db


def build_select(table: str, what: str, *, by_id: bool, placeholder: db.Placeholder = db.dollar) -> str:
    if by_id:
        return f"SELECT {what} FROM {table} WHERE id = {placeholder(1)}"
    return f"SELECT {what} FROM {table}"


def build_insert(
    table: str,
    columns: dict[str, str],
    *,
    placeholder: db.Placeholder = db.dollar,
) -> tuple[str, list[str]]:
    names = list(columns)
    placeholders = [placeholder(i) for i in range(1, len(names) + 1)]
    sql = f"INSERT INTO {table} ({','.join(names)}) VALUES ({','.join(placeholders)})"
    return sql, list(columns.values())


def build_update(
    table: str,
    assignments: dict[str, str],
    row_id: str,
    *,
    placeholder: db.Placeholder = db.dollar,
) -> tuple[str, list[str]]:
    # No assignments leaves an empty SET clause; the server rejects it.
    updates = [f"{name} = {placeholder(i)}" for i, name in enumerate(assignments, start=1)]
    id_placeholder = placeholder(len(updates) + 1)
    sql = f"UPDATE {table} SET {','.join(updates)} WHERE id = {id_placeholder}"
    return sql, [*assignments.values(), row_id]


def build_delete(table: str, *, placeholder: db.Placeholder = db.dollar) -> str:
    return f"DELETE FROM {table} WHERE id = {placeholder(1)}"


async def select_rows(
    conn: asyncpg.Connection,
    *,
    table: str,
    what: str,
    row_id: str | None = None,
) -> list[Any]:
    if row_id:
        return await db.fetch_all(
            conn,
            lambda placeholder: build_select(table, what, by_id=True, placeholder=placeholder),
            row_id,
        )
    return await db.fetch_all(conn, lambda placeholder: build_select(table, what, by_id=False))


async def insert_row(conn: asyncpg.Connection, *, table: str, columns: dict[str, str]) -> int:
    _, args = build_insert(table, columns)
    return await db.execute(
        conn,
        lambda placeholder: build_insert(table, columns, placeholder=placeholder)[0],
        *args,
    )


async def update_row(
    conn: asyncpg.Connection,
    *,
    table: str,
    row_id: str,
    assignments: dict[str, str],
) -> int:
    _, args = build_update(table, assignments, row_id)
    return await db.execute(
        conn,
        lambda placeholder: build_update(table, assignments, row_id, placeholder=placeholder)[0],
        *args,
    )


async def delete_row(conn: asyncpg.Connection, *, table: str, row_id: str) -> int:
    return await db.execute(
        conn,
        lambda placeholder: build_delete(table, placeholder=placeholder),
        row_id,
    )

"""
Invoice gateway business logic.

Each call opens one connection, runs one statement and closes the
connection before returning. Failures are mapped to HTTPException with
short, fixed messages; driver detail only reaches the client on insert.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
from fastapi import HTTPException, status

from core import db
from core.config import Settings

from . import repository
from .serialization import MarshalError, SerializationError, rows_to_json

logger = logging.getLogger(__name__)

# Reserved query keys.
AUTH_PARAM = "auth"
ID_PARAM = "id"

_STATEMENT_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, db.DatabaseError, OSError)


def _server_error(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def query_columns(items: Iterable[tuple[str, str]], *, exclude: Iterable[str] = ()) -> dict[str, str]:
    """
    Column -> value mapping from query-string pairs.

    Keys keep first-seen order and a repeated key keeps its first value.
    """
    skipped = set(exclude)
    columns: dict[str, str] = {}
    for key, value in items:
        if key in skipped or key in columns:
            continue
        columns[key] = value
    return columns


@asynccontextmanager
async def _connection(settings: Settings) -> AsyncIterator[asyncpg.Connection]:
    try:
        async with db.connect(settings.db_uri) as conn:
            yield conn
    except db.ConnectionFailed as exc:
        logger.error("db_connect_failed table=%s error=%s", settings.db_table, exc)
        raise _server_error("Error connecting to database") from exc


async def read_rows(settings: Settings, *, what: str, row_id: str = "") -> dict[str, Any]:
    if not what:
        raise _bad_request("Missing 'id' or 'what' parameter")

    async with _connection(settings) as conn:
        try:
            records = await repository.select_rows(
                conn,
                table=settings.db_table,
                what=what,
                row_id=row_id or None,
            )
        except _STATEMENT_ERRORS as exc:
            logger.exception("select_failed table=%s what=%s id=%s", settings.db_table, what, row_id)
            raise _server_error("Error fetching data") from exc

    try:
        data = rows_to_json(records)
    except MarshalError as exc:
        logger.exception("marshal_failed table=%s", settings.db_table)
        raise _server_error("Error marshalling data") from exc
    except SerializationError as exc:
        logger.exception("serialize_failed table=%s", settings.db_table)
        raise _server_error("Error scanning data") from exc

    return {"msg": "ok", "data": data}


async def add_row(settings: Settings, params: dict[str, str]) -> dict[str, Any]:
    columns = query_columns(params.items(), exclude=[AUTH_PARAM])

    async with _connection(settings) as conn:
        try:
            affected = await repository.insert_row(conn, table=settings.db_table, columns=columns)
        except _STATEMENT_ERRORS as exc:
            logger.exception("insert_failed table=%s columns=%s", settings.db_table, list(columns))
            raise _server_error(f"Error inserting data: {exc}") from exc

    logger.info("insert_ok table=%s affected=%s", settings.db_table, affected)
    return {"msg": "ok", "affected": affected}


async def update_row(settings: Settings, params: dict[str, str], *, row_id: str) -> dict[str, Any]:
    if not row_id:
        raise _bad_request("Missing 'id' parameter")

    assignments = query_columns(params.items(), exclude=[ID_PARAM, AUTH_PARAM])

    async with _connection(settings) as conn:
        try:
            affected = await repository.update_row(
                conn,
                table=settings.db_table,
                row_id=row_id,
                assignments=assignments,
            )
        except _STATEMENT_ERRORS as exc:
            logger.exception("update_failed table=%s id=%s", settings.db_table, row_id)
            raise _server_error("Error updating data") from exc

    logger.info("update_ok table=%s id=%s affected=%s", settings.db_table, row_id, affected)
    return {"msg": "ok", "affected": affected}


async def delete_row(settings: Settings, *, row_id: str) -> dict[str, Any]:
    if not row_id:
        raise _bad_request("Invalid id")

    async with _connection(settings) as conn:
        try:
            affected = await repository.delete_row(conn, table=settings.db_table, row_id=row_id)
        except _STATEMENT_ERRORS as exc:
            logger.exception("delete_failed table=%s id=%s", settings.db_table, row_id)
            raise _server_error("Error deleting data") from exc

    logger.info("delete_ok table=%s id=%s affected=%s", settings.db_table, row_id, affected)
    return {"msg": "ok", "affected": affected}

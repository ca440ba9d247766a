"""
Shared fixtures: settings, a fake per-request database and a test client.
"""

from __future__ import annotations

import os
import re
from collections.abc import AsyncIterator, Generator
from contextlib import asynccontextmanager
from typing import Any

import pytest
from asyncpg.types import Type
from fastapi.testclient import TestClient

from core import db
from core.config import Settings
from main import create_app

SECRET = "s3cret"

TEXT_TYPE = Type(oid=25, name="text", kind="scalar", schema="pg_catalog")


class FakeStatement:
    """Stands in for asyncpg.PreparedStatement."""

    def __init__(self, sql: str, param_types: dict[int, Type]) -> None:
        count = max((int(n) for n in re.findall(r"\$(\d+)", sql)), default=0)
        self._params = tuple(param_types.get(i, TEXT_TYPE) for i in range(1, count + 1))

    def get_parameters(self) -> tuple[Type, ...]:
        return self._params


class FakeConnection:
    """Stands in for asyncpg.Connection; records every statement."""

    def __init__(self, database: "FakeDatabase") -> None:
        self._database = database

    async def prepare(self, sql: str) -> FakeStatement:
        self._database.prepared.append(sql)
        if self._database.prepare_error is not None:
            raise self._database.prepare_error
        return FakeStatement(sql, self._database.param_types)

    async def fetch(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        self._database.statements.append((sql, args))
        if self._database.error is not None:
            raise self._database.error
        return list(self._database.rows)

    async def execute(self, sql: str, *args: Any) -> str:
        self._database.statements.append((sql, args))
        if self._database.error is not None:
            raise self._database.error
        return self._database.status


class FakeDatabase:
    def __init__(self) -> None:
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.rows: list[dict[str, Any]] = []
        self.status = "INSERT 0 1"
        self.error: Exception | None = None
        self.connect_error: Exception | None = None
        self.prepare_error: Exception | None = None
        self.param_types: dict[int, Type] = {}
        self.prepared: list[str] = []
        self.dsns: list[str] = []
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def connect(self, dsn: str) -> AsyncIterator[FakeConnection]:
        self.dsns.append(dsn)
        if self.connect_error is not None:
            raise self.connect_error
        self.opened += 1
        try:
            yield FakeConnection(self)
        finally:
            self.closed += 1


@pytest.fixture
def settings() -> Settings:
    return Settings(auth=SECRET, db_table="invoices", db_uri="postgres://gateway@db/test")


@pytest.fixture
def fake_db(monkeypatch: pytest.MonkeyPatch) -> FakeDatabase:
    fake = FakeDatabase()
    monkeypatch.setattr(db, "connect", fake.connect)
    return fake


@pytest.fixture
def client(settings: Settings, fake_db: FakeDatabase) -> TestClient:
    return TestClient(create_app(settings))


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": SECRET}


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Restore os.environ after tests that load .env files."""
    original_env = dict(os.environ)
    for var in ("AUTH", "DB_TABLE", "DB_URI", "HOST", "PORT", "LOG_LEVEL"):
        os.environ.pop(var, None)
    yield
    os.environ.clear()
    os.environ.update(original_env)

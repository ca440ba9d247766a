"""
Invoice gateway schemas (row shape and response bodies).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Invoice(BaseModel):
    """
    Nominal row shape. Real rows carry whatever columns the table has.
    """

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    vat: str | None = None


class ReadResponse(BaseModel):
    msg: str = "ok"
    data: list[dict[str, Any]] | None = None


class AffectedResponse(BaseModel):
    msg: str = "ok"
    affected: int


class HealthResponse(BaseModel):
    status: str
    msg: str


class ErrorResponse(BaseModel):
    msg: str

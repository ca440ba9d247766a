"""
Turn driver records into JSON-ready rows.

Values the driver decodes into objects JSON has no form for (numeric,
uuid, timestamps, ranges, bit strings, composite rows, ...) are rendered
as text or plain containers, so a row always encodes.
"""

from __future__ import annotations

import datetime
import math
from collections.abc import Iterable, Mapping
from typing import Any

import asyncpg


class SerializationError(RuntimeError):
    pass


class MarshalError(SerializationError):
    """A value has no JSON encoding (NaN, infinity)."""


def _range_text(value: asyncpg.Range) -> str:
    # Same text form the server prints, e.g. "[1,5)".
    if value.isempty:
        return "empty"
    lower = "" if value.lower is None else _scalar_text(value.lower)
    upper = "" if value.upper is None else _scalar_text(value.upper)
    opening = "[" if value.lower_inc else "("
    closing = "]" if value.upper_inc else ")"
    return f"{opening}{lower},{upper}{closing}"


def _scalar_text(value: Any) -> str:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def _to_json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MarshalError(f"Failed to marshal JSON: unsupported float value {value!r}")
        return value
    # bytea and other raw byte results are embedded as text.
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, asyncpg.Range):
        return _range_text(value)
    if isinstance(value, asyncpg.BitString):
        return value.as_string().replace(" ", "")
    if isinstance(value, asyncpg.Path):
        return [_to_json_value(point) for point in value.points]
    if isinstance(value, (asyncpg.Record, Mapping)):
        return {str(key): _to_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_value(item) for item in value]
    return _scalar_text(value)


def rows_to_json(records: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]] | None:
    """
    One dict per record, keys in column order.

    Returns None rather than [] when there are no records, so an empty
    result renders as `null`. Any failure aborts the whole conversion.
    """
    rows: list[dict[str, Any]] | None = None
    try:
        for record in records:
            row = {str(column): _to_json_value(value) for column, value in record.items()}
            if rows is None:
                rows = []
            rows.append(row)
    except (AttributeError, TypeError, ValueError) as exc:
        raise SerializationError(f"Failed to scan data: {exc}") from exc
    return rows

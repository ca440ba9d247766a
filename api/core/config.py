"""
Process settings, read once at startup.

The three values the gateway needs (shared secret, table, DSN) come from a
local `.env` file plus the process environment. Variables already set in the
process environment take precedence over the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Request

DEFAULT_ENV_FILE = ".env"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9413


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Settings:
    auth: str
    db_table: str
    db_uri: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings(env_file: str | os.PathLike[str] = DEFAULT_ENV_FILE) -> Settings:
    """
    Load `env_file` into the environment and build Settings from it.

    Raises ConfigError when the file cannot be read. Values are not
    validated: an empty AUTH or DB_URI is accepted here and fails later.
    """
    path = Path(env_file)
    if not path.is_file():
        raise ConfigError(f"Environment file not found: {path}")
    try:
        load_dotenv(path, override=False)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read environment file {path}: {exc}") from exc

    return Settings(
        auth=os.environ.get("AUTH", ""),
        db_table=os.environ.get("DB_TABLE", ""),
        db_uri=os.environ.get("DB_URI", ""),
        host=os.environ.get("HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
        port=_env_int("PORT", DEFAULT_PORT),
        log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def get_settings(request: Request) -> Settings:
    # Set by main.create_app().
    return request.app.state.settings

"""
Shared-secret check for protected routes.

The `Authorization` header must equal the configured secret exactly. There
is no scheme prefix, no expiry and no per-user identity.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, Header, HTTPException, Request, status

from core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def is_authorized(header_value: str | None, secret: str) -> bool:
    # A missing header compares as the empty string.
    presented = (header_value or "").encode("utf-8")
    return secrets.compare_digest(presented, secret.encode("utf-8"))


async def require_shared_secret(
    request: Request,
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not is_authorized(authorization, settings.auth):
        logger.warning("auth_rejected path=%s", request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid auth",
        )

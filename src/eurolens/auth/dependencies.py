"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from eurolens.auth.jwt import verify_token

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)


async def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str | None:
    """
    Return the signed-in account id, or None for guests.

    An invalid or expired token is treated as a guest request, matching how
    unauthenticated reads return empty data instead of failing.
    """
    if credentials is None:
        return None
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.info("invalid_bearer_token", error=str(e))
        return None
    return str(payload["sub"])


async def require_user_id(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str:
    """Return the signed-in account id. Raises 401 for guests."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail="Unauthorized") from e
    return str(payload["sub"])

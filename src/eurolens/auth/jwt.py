"""
HS256 JWT verification for tokens issued by the hosted auth provider.

The provider signs access tokens with a shared secret; ``sub`` is the account
id and ``aud`` is ``authenticated``. This service never issues tokens in
production. ``create_access_token`` exists for local development and tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from eurolens.config import get_settings

# Width of profiles.id; provider ids are UUID strings
MAX_SUBJECT_LENGTH = 36


def create_access_token(user_id: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """
    Sign a provider-shaped access token.

    Args:
        user_id: Account id placed in ``sub``.
        expires_in: Lifetime of the token.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "aud": settings.auth_jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a provider access token.

    Returns:
        Decoded payload dictionary with a non-empty ``sub`` that fits an
        account id.

    Raises:
        jwt.InvalidTokenError: If auth is unconfigured, or the token is
            invalid, expired, for another audience, or has no subject.
    """
    settings = get_settings()
    if not settings.auth_jwt_secret:
        msg = "Authentication is not configured"
        raise jwt.InvalidTokenError(msg)
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    subject = payload.get("sub")
    if not subject:
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)
    if len(str(subject)) > MAX_SUBJECT_LENGTH:
        msg = "Token subject is not an account id"
        raise jwt.InvalidTokenError(msg)
    return payload

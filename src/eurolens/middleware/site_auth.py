"""Optional site-wide HTTP Basic gate for private previews.

Enabled when ``EUROLENS_SITE_PASSWORD`` is set. Any username is accepted; only
the password is checked. Requests already carrying a valid account bearer
token pass too, since the ``Authorization`` header can hold only one scheme.
"""

import base64
import binascii
import secrets
from typing import Any

import jwt
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from eurolens.auth.jwt import verify_token

_OPEN_PATHS = frozenset({"/health", "/ready", "/version"})


def basic_auth_password(header: str | None) -> str | None:
    """Password from ``Basic base64(user:password)``, or None."""
    if not header:
        return None
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    _, sep, password = decoded.partition(":")
    return password if sep else None


def _has_valid_bearer(header: str | None) -> bool:
    scheme, _, token = (header or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return False
    try:
        verify_token(token.strip())
    except jwt.InvalidTokenError:
        return False
    return True


class SiteAuthMiddleware(BaseHTTPMiddleware):
    """Reject requests without the shared site password."""

    def __init__(self, app: Any, password: str) -> None:  # noqa: ANN401
        super().__init__(app)
        self.password = password

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """401 with a Basic challenge unless the password (or an account token) is presented."""
        if request.method == "OPTIONS" or request.url.path in _OPEN_PATHS:
            return await call_next(request)

        header = request.headers.get("Authorization")
        supplied = basic_auth_password(header)
        if supplied is not None and secrets.compare_digest(supplied.encode(), self.password.encode()):
            return await call_next(request)
        if _has_valid_bearer(header):
            return await call_next(request)

        return PlainTextResponse(
            "Authentication required",
            status_code=401,
            headers={"WWW-Authenticate": 'Basic realm="Protected Site"'},
        )

"""Provider token verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from eurolens.auth.jwt import create_access_token, verify_token
from eurolens.config import get_settings


class TestVerifyToken:
    def test_round_trip(self):
        payload = verify_token(create_access_token("user-1"))
        assert payload["sub"] == "user-1"
        assert payload["aud"] == "authenticated"

    def test_expired(self):
        token = create_access_token("user-1", expires_in=timedelta(seconds=-5))
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_audience(self):
        settings = get_settings()
        token = jwt.encode(
            {"sub": "user-1", "aud": "anon", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.auth_jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "user-1", "aud": "authenticated", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "another-secret-that-is-long-enough-000",
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_missing_subject(self):
        settings = get_settings()
        token = jwt.encode(
            {"aud": "authenticated", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.auth_jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError, match="subject"):
            verify_token(token)

    def test_subject_wider_than_account_id(self):
        assert verify_token(create_access_token("u" * 36))["sub"] == "u" * 36
        with pytest.raises(jwt.InvalidTokenError, match="account id"):
            verify_token(create_access_token("u" * 37))

    def test_unconfigured(self, monkeypatch):
        monkeypatch.setenv("EUROLENS_AUTH_JWT_SECRET", "")
        get_settings.cache_clear()
        with pytest.raises(jwt.InvalidTokenError, match="not configured"):
            verify_token("anything")

"""Middleware tests: request ID, CORS, error envelope, site gate."""

import base64
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from eurolens.auth.jwt import create_access_token
from eurolens.config import get_settings
from eurolens.main import create_app
from eurolens.middleware.site_auth import basic_auth_password


def basic(password: str, user: str = "preview") -> dict[str, str]:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/summarize",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


@pytest.mark.asyncio
async def test_404_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_unhandled_exception_is_json_500(app: FastAPI) -> None:
    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("kaboom")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


class TestBasicAuthParsing:
    def test_password_extracted(self):
        assert basic_auth_password(basic("s3cret:with:colons")["Authorization"]) == "s3cret:with:colons"

    def test_rejects_other_schemes_and_garbage(self):
        assert basic_auth_password(None) is None
        assert basic_auth_password("Bearer abc") is None
        assert basic_auth_password("Basic !!!not-base64") is None
        assert basic_auth_password("Basic " + base64.b64encode(b"no-colon").decode()) is None


@pytest_asyncio.fixture
async def gated_client(db_engine, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    """App built with a site password."""
    monkeypatch.setenv("EUROLENS_SITE_PASSWORD", "letmein")
    get_settings.cache_clear()
    application = create_app()
    async with AsyncClient(transport=ASGITransport(app=application), base_url="http://test") as ac:
        yield ac


class TestSiteGate:
    @pytest.mark.asyncio
    async def test_challenges_without_credentials(self, gated_client: AsyncClient):
        response = await gated_client.get("/api/levels")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == 'Basic realm="Protected Site"'
        assert response.text == "Authentication required"

    @pytest.mark.asyncio
    async def test_wrong_password(self, gated_client: AsyncClient):
        assert (await gated_client.get("/api/levels", headers=basic("nope"))).status_code == 401

    @pytest.mark.asyncio
    async def test_right_password_any_user(self, gated_client: AsyncClient):
        response = await gated_client.get("/api/levels", headers=basic("letmein", user="anyone"))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_account_token_passes(self, gated_client: AsyncClient):
        headers = {"Authorization": f"Bearer {create_access_token('user-1')}"}
        assert (await gated_client.get("/api/levels", headers=headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_probes_and_preflight_are_open(self, gated_client: AsyncClient):
        assert (await gated_client.get("/health")).status_code == 200
        preflight = await gated_client.options(
            "/api/levels",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
        )
        assert preflight.status_code == 200

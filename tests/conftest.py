"""Shared test fixtures."""

from __future__ import annotations

import os

# Settings are read on first use; pin the test environment before any import.
os.environ["EUROLENS_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EUROLENS_AUTH_JWT_SECRET"] = "test-secret-for-hs256-signing-0123456789"
os.environ["EUROLENS_LOG_FORMAT"] = "console"
os.environ["EUROLENS_RATE_LIMIT_BACKEND"] = "memory"
os.environ["EUROLENS_SITE_PASSWORD"] = ""
os.environ["EUROLENS_OPENAI_API_KEY"] = ""

from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from eurolens.auth.jwt import create_access_token
from eurolens.cache import ResponseCache
from eurolens.config import get_settings
from eurolens.database import close_db, get_engine, init_db
from eurolens.db import models  # noqa: F401
from eurolens.db.base import Base
from eurolens.legislation.client import EuroparlClient
from eurolens.legislation.service import LegislationService
from eurolens.main import create_app

EP_BASE_URL = "https://data.europarl.europa.eu/api/v2"


class EuroparlStub:
    """Canned EP Open Data responses keyed by path (and ``year`` when given)."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str | None], tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, payload: Any = None, *, year: int | None = None, status: int = 200) -> None:
        self.routes[(path, str(year) if year is not None else None)] = (status, payload)

    def calls_to(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path.removeprefix("/api/v2") == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v2")
        key = (path, request.url.params.get("year"))
        if key not in self.routes:
            key = (path, None)
        if key not in self.routes:
            return httpx.Response(404, json={"error": "not found"})
        status, payload = self.routes[key]
        return httpx.Response(status, json=payload)


class FakeSummaryGenerator:
    """Stands in for the provider-backed generator; set ``error`` to fail."""

    def __init__(self) -> None:
        self.chunks: list[str] = ["## What is it?\n", "A clean air law.\n"]
        self.error: Exception | None = None
        self.calls: list[tuple[str, str]] = []

    async def stream(self, system_prompt: str, user_prompt: str) -> AsyncIterator[str]:
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self._relay()

    async def _relay(self) -> AsyncIterator[str]:
        for chunk in self.chunks:
            yield chunk


@pytest.fixture(autouse=True)
def _fresh_settings() -> None:
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with all tables."""
    await init_db(get_settings().database_url)
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await close_db()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service-level tests."""
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def europarl() -> EuroparlStub:
    return EuroparlStub()


@pytest_asyncio.fixture
async def europarl_client(europarl: EuroparlStub) -> AsyncGenerator[EuroparlClient, None]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(europarl.handler), base_url=EP_BASE_URL)
    yield EuroparlClient(http, ResponseCache())
    await http.aclose()


@pytest.fixture
def legislation(europarl_client: EuroparlClient) -> LegislationService:
    return LegislationService(europarl_client)


@pytest.fixture
def summary_generator() -> FakeSummaryGenerator:
    return FakeSummaryGenerator()


@pytest_asyncio.fixture
async def app(
    db_engine: AsyncEngine,
    europarl: EuroparlStub,
    summary_generator: FakeSummaryGenerator,
) -> AsyncGenerator[FastAPI, None]:
    """App with process state wired to fakes (ASGITransport skips the lifespan)."""
    application = create_app()
    http = httpx.AsyncClient(transport=httpx.MockTransport(europarl.handler), base_url=EP_BASE_URL)
    application.state.legislation = LegislationService(EuroparlClient(http, application.state.response_cache))
    application.state.summary_generator = summary_generator
    yield application
    await http.aclose()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def bearer(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Signed-in headers for the default test account."""
    return bearer("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def make_auth_headers():
    """Signed-in headers for any account id."""
    return bearer

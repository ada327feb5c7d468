"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from openai import AsyncOpenAI

from eurolens.cache import ResponseCache
from eurolens.config import Settings, get_settings
from eurolens.database import close_db, init_db
from eurolens.gamification.router import router as gamification_router
from eurolens.health.router import router as health_router
from eurolens.leaderboard.router import router as leaderboard_router
from eurolens.legislation.client import EuroparlClient
from eurolens.legislation.router import router as legislation_router
from eurolens.legislation.service import LegislationService
from eurolens.middleware import setup_middleware
from eurolens.middleware.rate_limit import FixedWindowRateLimiter, RateLimiter, RedisFixedWindowRateLimiter
from eurolens.redis_client import close_redis, init_redis
from eurolens.summaries.router import router as summaries_router
from eurolens.summaries.service import SummaryGenerator
from eurolens.users.router import router as users_router

logger = structlog.get_logger()


def build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.rate_limit_backend == "redis":
        return RedisFixedWindowRateLimiter(
            limit=settings.summary_rate_limit_requests,
            window_seconds=settings.summary_rate_limit_window_seconds,
        )
    return FixedWindowRateLimiter(
        limit=settings.summary_rate_limit_requests,
        window_seconds=settings.summary_rate_limit_window_seconds,
    )


def build_summary_generator(settings: Settings) -> SummaryGenerator | None:
    if not settings.openai_api_key:
        return None
    client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
    return SummaryGenerator(client, settings.summary_model)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.rate_limit_backend == "redis":
        await init_redis(settings.redis_url)

    http = httpx.AsyncClient(
        base_url=settings.europarl_base_url,
        timeout=settings.europarl_timeout_seconds,
        follow_redirects=True,
    )
    app.state.legislation = LegislationService(
        EuroparlClient(http, app.state.response_cache, ttl=settings.europarl_cache_ttl_seconds),
        list_limit=settings.procedures_list_limit,
        enrich_limit=settings.procedures_enrich_limit,
        decisions_window_days=settings.recent_decisions_window_days,
        recent_meetings=settings.recent_meetings_limit,
        max_decided=settings.recent_decisions_max,
    )
    app.state.summary_generator = build_summary_generator(settings)
    if app.state.summary_generator is None:
        logger.warning("summaries_disabled", reason="EUROLENS_OPENAI_API_KEY is not set")

    yield

    await http.aclose()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EuroLens API",
        description="Backend API for EuroLens: EU legislation tracking with civic gamification",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.response_cache = ResponseCache(
        default_ttl=settings.response_cache_ttl_seconds,
        max_size=settings.response_cache_max_size,
    )
    app.state.summary_rate_limiter = build_rate_limiter(settings)
    app.state.summary_generator = None

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(leaderboard_router)
    app.include_router(gamification_router)
    app.include_router(legislation_router)
    app.include_router(summaries_router)

    return app


app = create_app()

"""Shared FastAPI dependencies.

Process-scoped components (EP client, summary generator, rate limiter) are
built at startup and kept on ``app.state``.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from eurolens.legislation.service import LegislationService
from eurolens.middleware.rate_limit import RateLimiter
from eurolens.summaries.service import SummaryGenerator


def get_legislation_service(request: Request) -> LegislationService:
    return request.app.state.legislation


def get_summary_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.summary_rate_limiter


def get_summary_generator(request: Request) -> SummaryGenerator:
    generator: SummaryGenerator | None = request.app.state.summary_generator
    if generator is None:
        raise HTTPException(status_code=503, detail="Summaries are not configured")
    return generator

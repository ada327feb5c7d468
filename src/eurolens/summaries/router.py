"""POST /api/summarize: streamed plain-language summary of a bill."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from eurolens.dependencies import get_summary_generator, get_summary_rate_limiter
from eurolens.middleware.rate_limit import RateLimitDecision, RateLimiter, RateLimitExceeded, client_address
from eurolens.schemas import CamelModel
from eurolens.summaries.prompts import build_system_prompt, build_user_prompt
from eurolens.summaries.service import SummaryGenerator, SummaryProviderError

router = APIRouter(prefix="/api", tags=["Summaries"])


class SummarizeRequest(CamelModel):
    title: str | None = None
    summary: str | None = None
    subjects: list[str] = []
    persona: str = "general"
    country: str = "general"
    locale: str = "en"


async def enforce_summary_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_summary_rate_limiter),
) -> RateLimitDecision:
    """Count this request against the caller's window; 429 when over."""
    decision = await limiter.hit(client_address(request))
    if not decision.allowed:
        raise RateLimitExceeded(decision)
    return decision


async def validated_summary_request(
    body: SummarizeRequest,
    _decision: RateLimitDecision = Depends(enforce_summary_rate_limit),
) -> SummarizeRequest:
    """Reject a missing title once the request has been counted."""
    if not body.title or not body.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    return body


# Dependencies resolve in declaration order: quota, then title, then provider.
@router.post("/summarize")
async def summarize(
    body: SummarizeRequest = Depends(validated_summary_request),
    decision: RateLimitDecision = Depends(enforce_summary_rate_limit),
    generator: SummaryGenerator = Depends(get_summary_generator),
) -> StreamingResponse:
    """Stream ``## What is it?`` / ``## Why does it matter?`` / ``## Who is involved?``."""
    system_prompt = build_system_prompt(body.persona, body.country, body.locale)
    user_prompt = build_user_prompt(body.title, body.summary, body.subjects)

    try:
        chunks = await generator.stream(system_prompt, user_prompt)
    except SummaryProviderError as e:
        if e.rate_limited:
            raise HTTPException(status_code=503, detail="Summary service is busy, please try again shortly") from e
        raise HTTPException(status_code=502, detail="Failed to generate summary") from e

    return StreamingResponse(chunks, media_type="text/plain; charset=utf-8", headers=decision.headers())

"""Public leaderboard endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eurolens.database import get_session
from eurolens.leaderboard.service import LeaderboardEntry, clamp_page, get_leaderboard
from eurolens.schemas import CamelModel

router = APIRouter(prefix="/api", tags=["Leaderboard"])


class LeaderboardResponse(CamelModel):
    entries: list[LeaderboardEntry]


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
) -> LeaderboardResponse:
    """Top profiles by XP. ``limit`` is clamped to [1, 100] (default 20)."""
    page_limit, page_offset = clamp_page(limit, offset)
    return LeaderboardResponse(entries=await get_leaderboard(db, page_limit, page_offset))

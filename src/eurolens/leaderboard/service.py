"""All-time XP leaderboard read straight from the profiles table."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eurolens.db.models import Profile
from eurolens.gamification.migrations import backfill_stats
from eurolens.gamification.progress import total_actions
from eurolens.gamification.schemas import UserStats
from eurolens.schemas import CamelModel

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class LeaderboardEntry(CamelModel):
    rank: int
    user_id: str
    username: str
    xp: int
    level: int
    total_actions: int


def clamp_page(limit: str | int | None, offset: str | int | None) -> tuple[int, int]:
    """Lenient paging: unparseable or zero limit -> 20, then clamp to [1, 100]; offset >= 0."""

    def _to_int(value: str | int | None) -> int:
        try:
            return int(value) if value is not None else 0
        except (TypeError, ValueError):
            return 0

    return min(MAX_LIMIT, max(1, _to_int(limit) or DEFAULT_LIMIT)), max(0, _to_int(offset))


async def get_leaderboard(db: AsyncSession, limit: int = DEFAULT_LIMIT, offset: int = 0) -> list[LeaderboardEntry]:
    """Profiles ranked by XP (ties: earliest account first)."""
    result = await db.execute(
        select(Profile)
        .order_by(Profile.xp.desc(), Profile.created_at.asc(), Profile.id.asc())
        .offset(offset)
        .limit(limit)
    )
    entries = []
    for i, row in enumerate(result.scalars().all()):
        stats = UserStats.model_validate(backfill_stats(row.stats))
        entries.append(LeaderboardEntry(
            rank=offset + i + 1,
            user_id=row.id,
            username=row.username or "EU Citizen",
            xp=row.xp or 0,
            level=row.level or 1,
            total_actions=total_actions(stats),
        ))
    logger.debug("Leaderboard page offset=%d limit=%d -> %d entries", offset, limit, len(entries))
    return entries

"""Public gamification catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from eurolens.gamification.catalog import ACHIEVEMENTS
from eurolens.gamification.level_thresholds import LEVEL_THRESHOLDS, get_level_title
from eurolens.gamification.schemas import (
    AchievementCatalogResponse,
    AllLevelsResponse,
    LevelEntry,
)

router = APIRouter(prefix="/api", tags=["Gamification"])


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels() -> AllLevelsResponse:
    """Get all level definitions."""
    return AllLevelsResponse(
        levels=[
            LevelEntry(level=i + 1, title=get_level_title(i + 1), xp_required=threshold)
            for i, threshold in enumerate(LEVEL_THRESHOLDS)
        ]
    )


@router.get("/achievements", response_model=AchievementCatalogResponse)
async def list_achievements() -> AchievementCatalogResponse:
    """Get the achievement catalog in display order."""
    return AchievementCatalogResponse(achievements=list(ACHIEVEMENTS.values()))

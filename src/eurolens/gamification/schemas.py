"""Pydantic models for progress documents and gamification endpoints."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import Field

from eurolens.schemas import CamelModel

Position = Literal["support", "oppose", "neutral"]
ActionType = Literal["contact_mep", "consultation", "petition", "share"]

POSITIONS: tuple[str, ...] = ("support", "oppose", "neutral")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


# --- Progress documents ---


class UserStats(CamelModel):
    total_positions: int = Field(0, ge=0)
    meps_contacted: int = Field(0, ge=0)
    consultations_joined: int = Field(0, ge=0)
    petitions_signed: int = Field(0, ge=0)
    procedures_shared: int = Field(0, ge=0)
    procedures_viewed: int = Field(0, ge=0)
    summaries_generated: int = Field(0, ge=0)


class UserProfile(CamelModel):
    id: str = Field(default_factory=_new_id)
    username: str = "EU Citizen"
    xp: int = Field(0, ge=0)
    level: int = Field(1, ge=1)
    streak: int = Field(0, ge=0)
    last_active_date: date | None = None
    achievements: list[str] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)
    created_at: datetime = Field(default_factory=_utcnow)


class UserPosition(CamelModel):
    id: str = Field(default_factory=_new_id)
    procedure_id: str = Field(max_length=64)
    procedure_title: str
    position: Position
    reason: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    actions_taken: list[ActionType] = Field(default_factory=list)


# --- Achievements ---


class AchievementDefinition(CamelModel):
    id: str
    name: str
    description: str
    icon: str
    xp_reward: int
    max_progress: int | None = None


class UnlockedAchievement(AchievementDefinition):
    unlocked_at: datetime


class AchievementCatalogResponse(CamelModel):
    achievements: list[AchievementDefinition]


# --- Levels ---


class LevelEntry(CamelModel):
    level: int
    title: str
    xp_required: int


class AllLevelsResponse(CamelModel):
    levels: list[LevelEntry]


class LevelInfo(CamelModel):
    """Level, title and progress within the level for a given XP total."""

    level: int
    title: str
    xp_into_level: int
    xp_for_level: int
    progress: float
    next_level: int
    next_title: str

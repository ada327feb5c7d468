"""Request/response schemas for the /api/me endpoints.

Request fields are optional so missing values surface as 400 with the
service's message rather than a generic validation error.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from eurolens.gamification.schemas import LevelInfo, UnlockedAchievement, UserPosition, UserProfile
from eurolens.schemas import CamelModel


class ProfileResponse(CamelModel):
    profile: UserProfile | None
    level_info: LevelInfo | None = None


class ProfileUpdateRequest(CamelModel):
    username: str | None = Field(None, max_length=64)


class PositionsResponse(CamelModel):
    positions: list[UserPosition]


class PositionCreateRequest(CamelModel):
    procedure_id: str | None = Field(None, max_length=64)
    procedure_title: str | None = None
    position: str | None = None
    reason: str | None = None


class PositionSaveResponse(CamelModel):
    position: UserPosition
    xp_gained: int
    achievements: list[UnlockedAchievement] = []


class ActionRequest(CamelModel):
    action: str | None = None
    procedure_id: str | None = None


class ActionResponse(CamelModel):
    profile: UserProfile
    level_info: LevelInfo
    xp_gained: int
    achievements: list[UnlockedAchievement] = []


class AlertResponse(CamelModel):
    id: str
    procedure_reference: str | None = None
    topic: str | None = None
    type: str
    channel: str
    created_at: datetime


class AlertsResponse(CamelModel):
    alerts: list[AlertResponse]


class AlertCreateRequest(CamelModel):
    procedure_reference: str | None = Field(None, max_length=64)
    topic: str | None = Field(None, max_length=128)
    type: str | None = Field(None, max_length=32)
    channel: str | None = None


class AlertCreateResponse(CamelModel):
    alert: AlertResponse


class MergeGuestRequest(CamelModel):
    profile: UserProfile | None = None
    positions: list[dict[str, Any]] | None = None


class OkResponse(CamelModel):
    ok: bool = True

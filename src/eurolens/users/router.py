"""Signed-in progress endpoints: all /api/me/* routes.

Reads from guests return empty data; writes from guests return 401.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from eurolens.auth.dependencies import get_optional_user_id, require_user_id
from eurolens.database import get_session
from eurolens.db.models import UserAlert
from eurolens.gamification.level_thresholds import compute_level
from eurolens.gamification.schemas import LevelInfo, UserPosition, UserProfile
from eurolens.users import service
from eurolens.users.schemas import (
    ActionRequest,
    ActionResponse,
    AlertCreateRequest,
    AlertCreateResponse,
    AlertResponse,
    AlertsResponse,
    MergeGuestRequest,
    OkResponse,
    PositionCreateRequest,
    PositionSaveResponse,
    PositionsResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/me", tags=["Me"])


def _level_info(profile: UserProfile) -> LevelInfo:
    return LevelInfo(**compute_level(profile.xp))


def _alert_response(alert: UserAlert) -> AlertResponse:
    return AlertResponse(
        id=alert.id,
        procedure_reference=alert.procedure_reference,
        topic=alert.topic,
        type=alert.type,
        channel=alert.channel,
        created_at=alert.created_at,
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user_id: str | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Own profile, or null for guests."""
    if user_id is None:
        return ProfileResponse(profile=None)
    profile = await service.load_profile(db, user_id)
    await db.commit()
    return ProfileResponse(profile=profile, level_info=_level_info(profile))


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Rename the profile."""
    profile = await service.update_username(db, user_id, body.username)
    await db.commit()
    return ProfileResponse(profile=profile, level_info=_level_info(profile))


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


@router.get("/positions", response_model=PositionsResponse)
async def list_positions(
    user_id: str | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_session),
) -> PositionsResponse:
    """Own stances, newest first. Empty for guests."""
    if user_id is None:
        return PositionsResponse(positions=[])
    return PositionsResponse(positions=await service.list_positions(db, user_id))


@router.post("/positions", response_model=PositionSaveResponse)
async def save_position(
    body: PositionCreateRequest,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_session),
) -> PositionSaveResponse:
    """State or restate a stance on a procedure."""
    if not body.procedure_id or not body.procedure_title or not body.position:
        raise HTTPException(status_code=400, detail="procedureId, procedureTitle, and position are required")
    try:
        outcome = await service.save_position(
            db,
            user_id,
            procedure_id=body.procedure_id,
            procedure_title=body.procedure_title,
            position=body.position,
            reason=body.reason,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return PositionSaveResponse(
        position=outcome.position,
        xp_gained=outcome.xp_gained,
        achievements=outcome.achievements,
    )


# ---------------------------------------------------------------------------
# Rewarded actions
# ---------------------------------------------------------------------------


@router.post("/actions", response_model=ActionResponse)
async def record_action(
    body: ActionRequest,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_session),
) -> ActionResponse:
    """Record a civic action, procedure view or summary generation."""
    if not body.action:
        raise HTTPException(status_code=400, detail="action is required")
    try:
        outcome = await service.record_action(db, user_id, body.action, body.procedure_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return ActionResponse(
        profile=outcome.profile,
        level_info=_level_info(outcome.profile),
        xp_gained=outcome.xp_gained,
        achievements=outcome.achievements,
    )


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


@router.get("/alerts", response_model=AlertsResponse)
async def list_alerts(
    user_id: str | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_session),
) -> AlertsResponse:
    """Own alert subscriptions. Empty for guests."""
    if user_id is None:
        return AlertsResponse(alerts=[])
    alerts = await service.list_alerts(db, user_id)
    return AlertsResponse(alerts=[_alert_response(a) for a in alerts])


@router.post("/alerts", response_model=AlertCreateResponse)
async def create_alert(
    body: AlertCreateRequest,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_session),
) -> AlertCreateResponse:
    """Subscribe to a procedure or topic."""
    try:
        alert = await service.create_alert(
            db,
            user_id,
            type=body.type,
            channel=body.channel,
            procedure_reference=body.procedure_reference,
            topic=body.topic,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return AlertCreateResponse(alert=_alert_response(alert))


@router.delete("/alerts", response_model=OkResponse)
async def delete_alert(
    alert_id: str | None = Query(None, alias="id"),
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_session),
) -> OkResponse:
    """Remove an alert by ``?id=``."""
    if not alert_id:
        raise HTTPException(status_code=400, detail="id query parameter is required")
    await service.delete_alert(db, user_id, alert_id)
    await db.commit()
    return OkResponse()


# ---------------------------------------------------------------------------
# Guest merge
# ---------------------------------------------------------------------------


@router.post("/merge-guest", response_model=OkResponse)
async def merge_guest(
    body: MergeGuestRequest,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_session),
) -> OkResponse:
    """Fold the guest snapshot from this device into the account."""
    if body.profile is None or body.positions is None:
        raise HTTPException(status_code=400, detail="profile and positions are required")

    positions: list[UserPosition] = []
    for item in body.positions:
        try:
            positions.append(UserPosition.model_validate(item))
        except ValidationError:
            logger.info("guest_position_skipped", user_id=user_id, procedure_id=item.get("procedureId"))

    await service.merge_guest(db, user_id, body.profile, positions)
    await db.commit()
    return OkResponse()

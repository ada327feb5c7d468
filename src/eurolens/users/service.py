"""Signed-in progress: profiles, stances and alerts keyed by the account id.

Rows are converted to the same pydantic documents the guest store uses, the
shared operations in ``gamification.progress`` are applied, and the result is
written back. Functions flush; routers commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select

from eurolens.db.models import Position, Profile, UserAlert
from eurolens.gamification import progress
from eurolens.gamification.migrations import backfill_stats
from eurolens.gamification.schemas import (
    POSITIONS,
    UnlockedAchievement,
    UserPosition,
    UserProfile,
    UserStats,
)
from eurolens.users.merge import as_utc, merge_positions, merge_profiles

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

ALERT_CHANNELS = ("email", "in_app")


def _today() -> date:
    return datetime.now(timezone.utc).date()


# ---------------------------------------------------------------------------
# Row <-> document conversion
# ---------------------------------------------------------------------------


def profile_from_row(row: Profile) -> UserProfile:
    return UserProfile(
        id=row.id,
        username=row.username,
        xp=row.xp,
        level=row.level,
        streak=row.streak,
        last_active_date=row.last_active_date,
        achievements=list(dict.fromkeys(row.achievements or [])),
        stats=UserStats.model_validate(backfill_stats(row.stats)),
        created_at=as_utc(row.created_at),
    )


def _apply_profile(row: Profile, profile: UserProfile) -> None:
    row.username = profile.username
    row.xp = profile.xp
    row.level = profile.level
    row.streak = profile.streak
    row.last_active_date = profile.last_active_date
    row.achievements = list(profile.achievements)
    row.stats = profile.stats.model_dump(by_alias=True)


def position_from_row(row: Position) -> UserPosition:
    return UserPosition(
        id=row.id,
        procedure_id=row.procedure_id,
        procedure_title=row.procedure_title,
        position=row.position,  # type: ignore[arg-type]
        reason=row.reason,
        timestamp=as_utc(row.updated_at),
        actions_taken=list(row.actions_taken or []),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


async def get_or_create_profile(db: AsyncSession, user_id: str, today: date | None = None) -> Profile:
    """Fetch the account's profile row, creating a zeroed one on first use."""
    row = await db.get(Profile, user_id)
    if row is None:
        row = Profile(
            id=user_id,
            username="EU Citizen",
            xp=0,
            level=1,
            streak=0,
            last_active_date=today or _today(),
            stats=UserStats().model_dump(by_alias=True),
            achievements=[],
        )
        db.add(row)
        await db.flush()
        logger.info("profile_created", user_id=user_id)
    return row


async def load_profile(db: AsyncSession, user_id: str, today: date | None = None) -> UserProfile:
    """Return the profile with the daily streak applied."""
    row = await get_or_create_profile(db, user_id, today)
    profile = profile_from_row(row)
    if progress.apply_streak(profile, today or _today()):
        _apply_profile(row, profile)
        await db.flush()
    return profile


async def update_username(db: AsyncSession, user_id: str, username: str | None) -> UserProfile:
    """Rename the profile. Blank names leave the current one in place."""
    row = await get_or_create_profile(db, user_id)
    if username is not None and username.strip():
        row.username = username.strip()
    row.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return profile_from_row(row)


@dataclass
class ActionOutcome:
    profile: UserProfile
    xp_gained: int
    achievements: list[UnlockedAchievement]


async def record_action(
    db: AsyncSession,
    user_id: str,
    action: str,
    procedure_id: str | None = None,
) -> ActionOutcome:
    """
    Apply one rewarded action and evaluate achievements.

    Civic actions are also appended to the procedure's stance when one exists.

    Raises:
        ValueError: If the action type is unknown.
    """
    row = await get_or_create_profile(db, user_id)
    profile = profile_from_row(row)

    if action == "view_procedure":
        xp = progress.record_procedure_view(profile)
    elif action == "generate_summary":
        xp = progress.record_summary_generated(profile)
    else:
        xp = progress.record_action(profile, action)
        if procedure_id:
            await _mark_stance_action(db, user_id, procedure_id, action)

    unlocked = progress.check_achievements(profile)
    _apply_profile(row, profile)
    await db.flush()

    if unlocked:
        logger.info("achievements_unlocked", user_id=user_id, ids=[a.id for a in unlocked])
    return ActionOutcome(profile=profile, xp_gained=xp, achievements=unlocked)


async def _mark_stance_action(db: AsyncSession, user_id: str, procedure_id: str, action: str) -> None:
    result = await db.execute(
        select(Position).where(Position.user_id == user_id, Position.procedure_id == procedure_id)
    )
    stance = result.scalar_one_or_none()
    if stance is None:
        return
    actions = list(stance.actions_taken or [])
    if action not in actions:
        stance.actions_taken = [*actions, action]


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


async def list_positions(db: AsyncSession, user_id: str) -> list[UserPosition]:
    """All stances, most recently updated first."""
    result = await db.execute(
        select(Position).where(Position.user_id == user_id).order_by(Position.updated_at.desc())
    )
    return [position_from_row(row) for row in result.scalars().all()]


@dataclass
class StanceOutcome:
    position: UserPosition
    xp_gained: int
    achievements: list[UnlockedAchievement]


async def save_position(
    db: AsyncSession,
    user_id: str,
    procedure_id: str,
    procedure_title: str,
    position: str,
    reason: str | None = None,
    now: datetime | None = None,
) -> StanceOutcome:
    """
    Create or restate the stance on a procedure.

    Only the first stance on a procedure grants XP.

    Raises:
        ValueError: If the position value is not support/oppose/neutral.
    """
    if position not in POSITIONS:
        msg = "Invalid position"
        raise ValueError(msg)
    now = now or datetime.now(timezone.utc)

    profile_row = await get_or_create_profile(db, user_id)
    result = await db.execute(
        select(Position).where(Position.user_id == user_id, Position.procedure_id == procedure_id)
    )
    stance = result.scalar_one_or_none()

    if stance is not None:
        stance.procedure_title = procedure_title
        stance.position = position
        stance.reason = reason
        stance.updated_at = now
        await db.flush()
        return StanceOutcome(position=position_from_row(stance), xp_gained=0, achievements=[])

    stance = Position(
        user_id=user_id,
        procedure_id=procedure_id,
        procedure_title=procedure_title,
        position=position,
        reason=reason,
        actions_taken=[],
        created_at=now,
        updated_at=now,
    )
    db.add(stance)

    profile = profile_from_row(profile_row)
    xp = progress.reward_new_position(profile)
    unlocked = progress.check_achievements(profile, now)
    _apply_profile(profile_row, profile)
    await db.flush()

    return StanceOutcome(position=position_from_row(stance), xp_gained=xp, achievements=unlocked)


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


async def list_alerts(db: AsyncSession, user_id: str) -> list[UserAlert]:
    result = await db.execute(
        select(UserAlert).where(UserAlert.user_id == user_id).order_by(UserAlert.created_at.desc())
    )
    return list(result.scalars().all())


async def create_alert(
    db: AsyncSession,
    user_id: str,
    type: str | None,  # noqa: A002
    channel: str | None,
    procedure_reference: str | None = None,
    topic: str | None = None,
) -> UserAlert:
    """
    Subscribe to updates on a procedure or topic.

    Raises:
        ValueError: If type/channel are missing or the channel is unknown.
    """
    if not type or not channel:
        msg = "type and channel are required"
        raise ValueError(msg)
    if channel not in ALERT_CHANNELS:
        msg = "channel must be email or in_app"
        raise ValueError(msg)

    await get_or_create_profile(db, user_id)
    alert = UserAlert(
        user_id=user_id,
        procedure_reference=procedure_reference,
        topic=topic,
        type=type,
        channel=channel,
    )
    db.add(alert)
    await db.flush()
    return alert


async def delete_alert(db: AsyncSession, user_id: str, alert_id: str) -> None:
    """Delete one of the account's alerts. Unknown ids are a no-op."""
    await db.execute(delete(UserAlert).where(UserAlert.id == alert_id, UserAlert.user_id == user_id))
    await db.flush()


# ---------------------------------------------------------------------------
# Guest merge
# ---------------------------------------------------------------------------


async def merge_guest(
    db: AsyncSession,
    user_id: str,
    guest_profile: UserProfile,
    guest_positions: list[UserPosition],
) -> UserProfile:
    """Fold a guest snapshot into the account. Safe to repeat."""
    row = await get_or_create_profile(db, user_id)
    merged = merge_profiles(guest_profile, profile_from_row(row))
    _apply_profile(row, merged)

    result = await db.execute(select(Position).where(Position.user_id == user_id))
    rows = {r.procedure_id: r for r in result.scalars().all()}
    plan = merge_positions(guest_positions, [position_from_row(r) for r in rows.values()])

    for pos in plan.inserts:
        db.add(Position(
            user_id=user_id,
            procedure_id=pos.procedure_id,
            procedure_title=pos.procedure_title,
            position=pos.position,
            reason=pos.reason,
            actions_taken=list(pos.actions_taken),
            created_at=pos.timestamp,
            updated_at=pos.timestamp,
        ))
    for pos in plan.updates:
        stance = rows[pos.procedure_id]
        stance.procedure_title = pos.procedure_title
        stance.position = pos.position
        stance.reason = pos.reason
        stance.actions_taken = list(pos.actions_taken)
        stance.updated_at = pos.timestamp

    await db.flush()
    logger.info(
        "guest_merged",
        user_id=user_id,
        stances_changed=plan.changed,
        xp=merged.xp,
        positions_inserted=len(plan.inserts),
        positions_updated=len(plan.updates),
    )
    return merged

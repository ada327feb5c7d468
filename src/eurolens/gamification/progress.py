"""Pure progress operations shared by the guest store and the account store.

Every function here mutates the profile / position list handed to it and
never touches storage. Callers load, apply, then persist.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from eurolens.gamification.catalog import ACHIEVEMENT_DATA, ACHIEVEMENTS, ACTION_STATS, XP_REWARDS
from eurolens.gamification.level_thresholds import get_level
from eurolens.gamification.schemas import (
    UnlockedAchievement,
    UserPosition,
    UserProfile,
    UserStats,
)


def grant_xp(profile: UserProfile, amount: int) -> bool:
    """Add XP and recompute the level. Returns True on level up."""
    old_level = profile.level
    profile.xp += amount
    profile.level = get_level(profile.xp)
    return profile.level > old_level


def apply_streak(profile: UserProfile, today: date) -> bool:
    """Advance the daily streak for a visit on ``today``. Returns True if changed."""
    last_active = profile.last_active_date
    if last_active == today:
        return False

    if last_active == today - timedelta(days=1):
        profile.streak += 1
    else:
        profile.streak = 1
    profile.last_active_date = today
    return True


def total_actions(stats: UserStats) -> int:
    """Sum of civic action counters (views and summaries excluded)."""
    return sum(getattr(stats, field) for field in ACTION_STATS.values())


def unique_action_types(stats: UserStats) -> int:
    """Number of civic action types performed at least once."""
    return sum(1 for field in ACTION_STATS.values() if getattr(stats, field) > 0)


def record_procedure_view(profile: UserProfile) -> int:
    profile.stats.procedures_viewed += 1
    grant_xp(profile, XP_REWARDS["view_procedure"])
    return XP_REWARDS["view_procedure"]


def record_summary_generated(profile: UserProfile) -> int:
    profile.stats.summaries_generated += 1
    grant_xp(profile, XP_REWARDS["generate_summary"])
    return XP_REWARDS["generate_summary"]


def record_action(profile: UserProfile, action_type: str) -> int:
    """Count a civic action and grant its reward. Returns XP gained.

    Raises:
        ValueError: If the action type is unknown.
    """
    field = ACTION_STATS.get(action_type)
    if field is None:
        msg = f"Unknown action type: {action_type}"
        raise ValueError(msg)
    setattr(profile.stats, field, getattr(profile.stats, field) + 1)
    grant_xp(profile, XP_REWARDS[action_type])
    return XP_REWARDS[action_type]


def find_position(positions: list[UserPosition], procedure_id: str) -> UserPosition | None:
    for pos in positions:
        if pos.procedure_id == procedure_id:
            return pos
    return None


def upsert_position(
    positions: list[UserPosition],
    procedure_id: str,
    procedure_title: str,
    position: str,
    reason: str | None = None,
    now: datetime | None = None,
) -> tuple[UserPosition, bool]:
    """Create or restate the stance for a procedure.

    Returns (stance, created). Only a newly created stance earns XP; the
    caller grants it via :func:`reward_new_position`.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    existing = find_position(positions, procedure_id)
    if existing is not None:
        existing.procedure_title = procedure_title
        existing.position = position  # type: ignore[assignment]
        existing.reason = reason
        existing.timestamp = now
        return existing, False

    new_position = UserPosition(
        procedure_id=procedure_id,
        procedure_title=procedure_title,
        position=position,  # type: ignore[arg-type]
        reason=reason,
        timestamp=now,
    )
    positions.append(new_position)
    return new_position, True


def reward_new_position(profile: UserProfile) -> int:
    profile.stats.total_positions += 1
    grant_xp(profile, XP_REWARDS["state_position"])
    return XP_REWARDS["state_position"]


def mark_action_taken(positions: list[UserPosition], procedure_id: str, action_type: str) -> bool:
    """Append the action to the procedure's stance if not already there.

    Raises:
        ValueError: If the action type is not a civic action.
    """
    if action_type not in ACTION_STATS:
        msg = f"Unknown action type: {action_type}"
        raise ValueError(msg)
    pos = find_position(positions, procedure_id)
    if pos is None or action_type in pos.actions_taken:
        return False
    pos.actions_taken.append(action_type)  # type: ignore[arg-type]
    return True


# ---------------------------------------------------------------------------
# Achievement evaluation
# ---------------------------------------------------------------------------


def _trigger_met(profile: UserProfile, trigger_type: str, config: dict) -> bool:
    threshold = config["threshold"]
    if trigger_type == "stat":
        return getattr(profile.stats, config["field"]) >= threshold
    if trigger_type == "unique_actions":
        return unique_action_types(profile.stats) >= threshold
    if trigger_type == "total_actions":
        return total_actions(profile.stats) >= threshold
    if trigger_type == "level":
        return profile.level >= threshold
    if trigger_type == "streak":
        return profile.streak >= threshold
    msg = f"Unknown trigger type: {trigger_type}"
    raise ValueError(msg)


def unlock_achievement(
    profile: UserProfile,
    achievement_id: str,
    now: datetime | None = None,
) -> UnlockedAchievement | None:
    """Unlock one achievement and grant its reward. None if already held or unknown."""
    if achievement_id in profile.achievements:
        return None
    definition = ACHIEVEMENTS.get(achievement_id)
    if definition is None:
        return None

    profile.achievements.append(achievement_id)
    grant_xp(profile, definition.xp_reward)
    return UnlockedAchievement(
        **definition.model_dump(),
        unlocked_at=now or datetime.now(timezone.utc),
    )


def check_achievements(profile: UserProfile, now: datetime | None = None) -> list[UnlockedAchievement]:
    """Unlock every locked achievement whose trigger is now met.

    Rewards can lift the level and satisfy a level trigger, so the catalog is
    rescanned until a pass unlocks nothing.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    unlocked: list[UnlockedAchievement] = []
    while True:
        newly: list[UnlockedAchievement] = []
        for entry in ACHIEVEMENT_DATA:
            if entry["id"] in profile.achievements:
                continue
            if _trigger_met(profile, entry["trigger_type"], entry["trigger_config"]):
                achievement = unlock_achievement(profile, entry["id"], now)
                if achievement is not None:
                    newly.append(achievement)
        if not newly:
            return unlocked
        unlocked.extend(newly)

"""Guest-to-account reconciliation.

Pure functions: they take the guest snapshot and the account's current state
and return what the account should become. ``users.service.merge_guest``
loads, calls these, and persists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from eurolens.gamification.level_thresholds import get_level
from eurolens.gamification.schemas import UserPosition, UserProfile, UserStats


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def merge_profiles(local: UserProfile, remote: UserProfile) -> UserProfile:
    """Combine guest progress into the account profile.

    XP, streak and every stats counter take the max of both sides, achievements
    are unioned, the later last-active date wins. Identity, username and
    creation time stay the account's. Running it again on its own output with
    the same guest profile changes nothing.
    """
    xp = max(local.xp, remote.xp)

    stats = UserStats(**{
        name: max(getattr(local.stats, name), getattr(remote.stats, name))
        for name in UserStats.model_fields
    })

    achievements = list(dict.fromkeys([*remote.achievements, *local.achievements]))

    dates = [d for d in (remote.last_active_date, local.last_active_date) if d is not None]
    last_active = max(dates) if dates else None

    return remote.model_copy(update={
        "xp": xp,
        "level": get_level(xp),
        "streak": max(local.streak, remote.streak),
        "last_active_date": last_active,
        "stats": stats,
        "achievements": achievements,
    })


@dataclass
class PositionMerge:
    inserts: list[UserPosition] = field(default_factory=list)
    updates: list[UserPosition] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.inserts or self.updates)


def merge_positions(local: list[UserPosition], remote: list[UserPosition]) -> PositionMerge:
    """Decide which guest stances to write to the account.

    A guest stance on a procedure the account has no stance for is inserted.
    When both sides have one, the more recent timestamp wins: a newer guest
    stance replaces title, position, reason and timestamp and its actions are
    appended to the account's; an equal or older guest stance leaves the
    account row untouched.
    """
    by_procedure = {p.procedure_id: p for p in remote}
    # Index into plan.inserts for procedures the account has no row for yet
    pending: dict[str, int] = {}
    plan = PositionMerge()

    for guest in local:
        existing = by_procedure.get(guest.procedure_id)
        if existing is None:
            inserted = guest.model_copy(update={"actions_taken": list(dict.fromkeys(guest.actions_taken))})
            pending[guest.procedure_id] = len(plan.inserts)
            plan.inserts.append(inserted)
            by_procedure[guest.procedure_id] = inserted
            continue

        if as_utc(guest.timestamp) <= as_utc(existing.timestamp):
            continue

        updated = existing.model_copy(update={
            "procedure_title": guest.procedure_title,
            "position": guest.position,
            "reason": guest.reason,
            "timestamp": guest.timestamp,
            "actions_taken": list(dict.fromkeys([*existing.actions_taken, *guest.actions_taken])),
        })
        if guest.procedure_id in pending:
            plan.inserts[pending[guest.procedure_id]] = updated
        else:
            plan.updates.append(updated)
        by_procedure[guest.procedure_id] = updated

    return plan

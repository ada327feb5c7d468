"""Guest progress store backed by a small key-document storage.

Mirrors the account store's contract (load-with-migration, streak on read,
rewarded actions) but persists to a ``KeyValueStorage``: the browser's
localStorage equivalent. Persistence is best-effort: an unavailable storage
yields a transient default on read and a ``False`` result on write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Protocol

from eurolens.gamification import progress
from eurolens.gamification.level_thresholds import get_level
from eurolens.gamification.migrations import CURRENT_SCHEMA_VERSION, SCHEMA_VERSION_KEY, migrate_document
from eurolens.gamification.schemas import UnlockedAchievement, UserPosition, UserProfile

logger = logging.getLogger(__name__)

PROFILE_KEY = "eurolens-user-profile"
POSITIONS_KEY = "eurolens-positions"


class KeyValueStorage(Protocol):
    """String key/value storage. Implementations raise OSError when unavailable."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Process-local storage, also handy as a stand-in for a disabled browser store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class JSONFileStorage:
    """All keys in one JSON object on disk; writes replace the file atomically."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def get_item(self, key: str) -> str | None:
        try:
            return self._read_all().get(key)
        except ValueError as e:
            raise OSError(f"Corrupt storage file {self.path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except ValueError:
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".eurolens-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


@dataclass
class ActionResult:
    profile: UserProfile
    xp_gained: int


@dataclass
class PositionResult:
    position: UserPosition
    xp_gained: int


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class LocalProgressStore:
    """Guest-mode progress: one profile document and one stance list."""

    def __init__(
        self,
        storage: KeyValueStorage,
        today: Callable[[], date] = _today_utc,
        now: Callable[[], datetime] = _now_utc,
    ) -> None:
        self.storage = storage
        self._today = today
        self._now = now

    def _default_profile(self) -> UserProfile:
        return UserProfile(last_active_date=self._today(), created_at=self._now())

    # --- Profile ---

    def get_profile(self) -> UserProfile:
        """Load (or create) the profile, migrate it, and apply the daily streak."""
        try:
            raw = self.storage.get_item(PROFILE_KEY)
        except OSError:
            logger.debug("Guest storage unavailable, using transient profile", exc_info=True)
            return self._default_profile()

        profile: UserProfile | None = None
        dirty = False
        if raw is not None:
            try:
                data = json.loads(raw)
                if not isinstance(data, dict):
                    msg = "profile document is not an object"
                    raise ValueError(msg)
                doc, dirty = migrate_document(data)
                profile = UserProfile.model_validate(doc)
            except ValueError:
                logger.warning("Discarding unreadable guest profile document")
                profile = None

        if profile is None:
            profile = self._default_profile()
            self.save_profile(profile)
            return profile

        level = get_level(profile.xp)
        if profile.level != level:
            profile.level = level
            dirty = True

        if progress.apply_streak(profile, self._today()):
            dirty = True

        if dirty:
            self.save_profile(profile)
        return profile

    def save_profile(self, profile: UserProfile) -> bool:
        doc = profile.model_dump(mode="json", by_alias=True)
        doc[SCHEMA_VERSION_KEY] = CURRENT_SCHEMA_VERSION
        try:
            self.storage.set_item(PROFILE_KEY, json.dumps(doc))
        except OSError:
            logger.debug("Guest storage unavailable, profile not saved", exc_info=True)
            return False
        return True

    def update_username(self, username: str) -> UserProfile:
        profile = self.get_profile()
        profile.username = username
        self.save_profile(profile)
        return profile

    def add_xp(self, amount: int) -> tuple[UserProfile, bool]:
        """Grant arbitrary XP. Returns (profile, leveled_up)."""
        profile = self.get_profile()
        leveled_up = progress.grant_xp(profile, amount)
        self.save_profile(profile)
        return profile, leveled_up

    # --- Positions ---

    def get_positions(self) -> list[UserPosition]:
        try:
            raw = self.storage.get_item(POSITIONS_KEY)
        except OSError:
            return []
        if raw is None:
            return []
        try:
            items = json.loads(raw)
            return [UserPosition.model_validate(item) for item in items]
        except (ValueError, TypeError):
            logger.warning("Discarding unreadable guest positions document")
            return []

    def save_positions(self, positions: list[UserPosition]) -> bool:
        payload = json.dumps([p.model_dump(mode="json", by_alias=True) for p in positions])
        try:
            self.storage.set_item(POSITIONS_KEY, payload)
        except OSError:
            logger.debug("Guest storage unavailable, positions not saved", exc_info=True)
            return False
        return True

    def get_position(self, procedure_id: str) -> UserPosition | None:
        return progress.find_position(self.get_positions(), procedure_id)

    # --- Rewarded actions ---

    def save_position(
        self,
        procedure_id: str,
        procedure_title: str,
        position: str,
        reason: str | None = None,
    ) -> PositionResult:
        """State or restate a stance. Only the first stance on a procedure earns XP."""
        positions = self.get_positions()
        stance, created = progress.upsert_position(
            positions, procedure_id, procedure_title, position, reason, now=self._now(),
        )
        self.save_positions(positions)
        if not created:
            return PositionResult(position=stance, xp_gained=0)

        profile = self.get_profile()
        xp = progress.reward_new_position(profile)
        self.save_profile(profile)
        return PositionResult(position=stance, xp_gained=xp)

    def record_action(self, procedure_id: str, action_type: str) -> ActionResult:
        """Count a civic action and tag the procedure's stance with it.

        Raises:
            ValueError: If the action type is unknown. Nothing is stored.
        """
        profile = self.get_profile()
        xp = progress.record_action(profile, action_type)

        positions = self.get_positions()
        if progress.mark_action_taken(positions, procedure_id, action_type):
            self.save_positions(positions)
        self.save_profile(profile)
        return ActionResult(profile=profile, xp_gained=xp)

    def record_procedure_view(self) -> ActionResult:
        profile = self.get_profile()
        xp = progress.record_procedure_view(profile)
        self.save_profile(profile)
        return ActionResult(profile=profile, xp_gained=xp)

    def record_summary_generated(self) -> ActionResult:
        profile = self.get_profile()
        xp = progress.record_summary_generated(profile)
        self.save_profile(profile)
        return ActionResult(profile=profile, xp_gained=xp)

    def check_achievements(self) -> list[UnlockedAchievement]:
        profile = self.get_profile()
        unlocked = progress.check_achievements(profile, now=self._now())
        if unlocked:
            self.save_profile(profile)
        return unlocked

    # --- Sign-in hand-off ---

    def snapshot(self) -> dict:
        """Body for ``POST /me/merge-guest``."""
        return {
            "profile": self.get_profile().model_dump(mode="json", by_alias=True),
            "positions": [p.model_dump(mode="json", by_alias=True) for p in self.get_positions()],
        }

"""Schema migrations for stored guest progress documents.

Each stored profile document carries ``schemaVersion``. Documents written
before versioning existed have none and are treated as version 0. On load the
document walks the upgrade chain one step at a time; every step is a pure
function of the raw dict.
"""

from __future__ import annotations

from collections.abc import Callable

SCHEMA_VERSION_KEY = "schemaVersion"

STAT_FIELDS: tuple[str, ...] = (
    "totalPositions",
    "mepsContacted",
    "consultationsJoined",
    "petitionsSigned",
    "proceduresShared",
    "proceduresViewed",
    "summariesGenerated",
)


def backfill_stats(stats: dict | None) -> dict:
    """Return stats with every known counter present (missing ones as 0)."""
    stats = dict(stats or {})
    for field in STAT_FIELDS:
        if not isinstance(stats.get(field), int):
            stats[field] = 0
    return stats


def _upgrade_0_to_1(doc: dict) -> dict:
    # v0 documents predate the civic action counters.
    return {**doc, "stats": backfill_stats(doc.get("stats"))}


def _upgrade_1_to_2(doc: dict) -> dict:
    # v2 stores achievements as a duplicate-free list.
    achievements = doc.get("achievements")
    if not isinstance(achievements, list):
        achievements = []
    return {**doc, "achievements": list(dict.fromkeys(achievements))}


# UPGRADES[n] upgrades a version-n document to version n + 1.
UPGRADES: list[Callable[[dict], dict]] = [
    _upgrade_0_to_1,
    _upgrade_1_to_2,
]

CURRENT_SCHEMA_VERSION = len(UPGRADES)


def get_schema_version(doc: dict) -> int:
    version = doc.get(SCHEMA_VERSION_KEY, 0)
    return version if isinstance(version, int) and version >= 0 else 0


def migrate_document(doc: dict) -> tuple[dict, bool]:
    """Upgrade a stored profile document to the current schema.

    Returns (document, migrated). Documents from a newer schema are returned
    untouched.
    """
    version = get_schema_version(doc)
    if version >= CURRENT_SCHEMA_VERSION:
        return doc, False

    for upgrade in UPGRADES[version:]:
        doc = upgrade(doc)
    doc[SCHEMA_VERSION_KEY] = CURRENT_SCHEMA_VERSION
    return doc, True

"""Level thresholds and computation.

These values MUST match the web client's LEVEL_THRESHOLDS / LEVEL_TITLES so
that guest progress computed in the browser and account progress computed
here agree on the level for any XP total.
"""

from __future__ import annotations

# Cumulative XP required to reach level i + 1.
LEVEL_THRESHOLDS: list[int] = [
    0,
    100,
    250,
    500,
    1000,
    2000,
    3500,
    5500,
    8000,
    12000,
    17000,
    25000,
    35000,
    50000,
    75000,
]

LEVEL_TITLES: dict[int, str] = {
    1: "Newcomer",
    2: "Observer",
    3: "Citizen",
    4: "Engaged Voter",
    5: "Policy Enthusiast",
    6: "Active Advocate",
    7: "Parliament Watcher",
    8: "EU Insider",
    9: "Legislative Expert",
    10: "Democracy Champion",
    11: "Brussels Veteran",
    12: "Policy Architect",
    13: "Union Visionary",
    14: "EU Commissioner",
    15: "European Legend",
}

MAX_LEVEL = len(LEVEL_THRESHOLDS)


def get_level(xp: int) -> int:
    """Return the highest level whose threshold ``xp`` has reached."""
    for i in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        if xp >= LEVEL_THRESHOLDS[i]:
            return i + 1
    return 1


def get_level_title(level: int) -> str:
    """Display title for a level; anything past the table reuses the last title."""
    return LEVEL_TITLES.get(level, LEVEL_TITLES[MAX_LEVEL])


def get_xp_for_next_level(level: int) -> int:
    """Cumulative XP needed for the level after ``level`` (capped at max)."""
    if level >= MAX_LEVEL:
        return LEVEL_THRESHOLDS[-1]
    return LEVEL_THRESHOLDS[level]


def get_xp_progress(xp: int) -> dict:
    """Progress within the current level.

    ``current`` is XP earned since the level's threshold, ``next`` the span of
    the level. At max level the span is 0 and progress is reported as 100%.
    """
    level = get_level(xp)
    current_threshold = LEVEL_THRESHOLDS[level - 1]
    next_threshold = get_xp_for_next_level(level)

    xp_in_level = xp - current_threshold
    xp_needed = next_threshold - current_threshold

    if xp_needed > 0:
        progress = min(100.0, xp_in_level * 100 / xp_needed)
    else:
        progress = 100.0

    return {"current": xp_in_level, "next": xp_needed, "progress": progress}


def compute_level(xp: int) -> dict:
    """Full level info for API responses."""
    level = get_level(xp)
    progress = get_xp_progress(xp)
    next_level = min(level + 1, MAX_LEVEL)
    return {
        "level": level,
        "title": get_level_title(level),
        "xp_into_level": progress["current"],
        "xp_for_level": progress["next"],
        "progress": progress["progress"],
        "next_level": next_level,
        "next_title": get_level_title(next_level),
    }

"""Achievement catalog and XP rewards. Must match the web client's ACHIEVEMENTS_LIST."""

from __future__ import annotations

from eurolens.gamification.schemas import AchievementDefinition

XP_REWARDS: dict[str, int] = {
    "view_procedure": 5,
    "generate_summary": 10,
    "state_position": 10,
    "contact_mep": 50,
    "consultation": 40,
    "petition": 30,
    "share": 15,
}

# Civic action type -> stats counter it increments
ACTION_STATS: dict[str, str] = {
    "contact_mep": "meps_contacted",
    "consultation": "consultations_joined",
    "petition": "petitions_signed",
    "share": "procedures_shared",
}

# trigger_type is one of:
#   stat            stats.<field> >= threshold
#   unique_actions  number of civic action types with a non-zero counter >= threshold
#   total_actions   sum of civic action counters >= threshold
#   level           profile level >= threshold
#   streak          daily streak >= threshold
ACHIEVEMENT_DATA: list[dict] = [
    {
        "id": "first-steps",
        "name": "First Steps",
        "description": "View your first procedure",
        "icon": "\U0001f440",
        "xp_reward": 50,
        "trigger_type": "stat",
        "trigger_config": {"field": "procedures_viewed", "threshold": 1},
    },
    {
        "id": "curious-mind",
        "name": "Curious Mind",
        "description": "Generate your first AI summary",
        "icon": "\U0001f9e0",
        "xp_reward": 50,
        "trigger_type": "stat",
        "trigger_config": {"field": "summaries_generated", "threshold": 1},
    },
    {
        "id": "first-voice",
        "name": "First Voice",
        "description": "State your position on a procedure",
        "icon": "\U0001f5e3️",
        "xp_reward": 50,
        "trigger_type": "stat",
        "trigger_config": {"field": "total_positions", "threshold": 1},
    },
    {
        "id": "civic-champion",
        "name": "Civic Champion",
        "description": "Contact your first MEP",
        "icon": "✉️",
        "xp_reward": 100,
        "trigger_type": "stat",
        "trigger_config": {"field": "meps_contacted", "threshold": 1},
    },
    {
        "id": "active-citizen",
        "name": "Active Citizen",
        "description": "Take 3 different types of civic action",
        "icon": "\U0001f31f",
        "xp_reward": 150,
        "trigger_type": "unique_actions",
        "trigger_config": {"threshold": 3},
    },
    {
        "id": "democracy-defender",
        "name": "Democracy Defender",
        "description": "Contact 5 MEPs about different procedures",
        "icon": "\U0001f6e1️",
        "xp_reward": 300,
        "max_progress": 5,
        "trigger_type": "stat",
        "trigger_config": {"field": "meps_contacted", "threshold": 5},
    },
    {
        "id": "consultation-expert",
        "name": "Consultation Expert",
        "description": "Join 5 public consultations",
        "icon": "\U0001f4cb",
        "xp_reward": 250,
        "max_progress": 5,
        "trigger_type": "stat",
        "trigger_config": {"field": "consultations_joined", "threshold": 5},
    },
    {
        "id": "amplifier",
        "name": "Amplifier",
        "description": "Share 10 procedures to raise awareness",
        "icon": "\U0001f4e2",
        "xp_reward": 200,
        "max_progress": 10,
        "trigger_type": "stat",
        "trigger_config": {"field": "procedures_shared", "threshold": 10},
    },
    {
        "id": "eu-advocate",
        "name": "EU Advocate",
        "description": "Take 50 total civic actions",
        "icon": "\U0001f3c6",
        "xp_reward": 500,
        "max_progress": 50,
        "trigger_type": "total_actions",
        "trigger_config": {"threshold": 50},
    },
    {
        "id": "political-scientist",
        "name": "Political Scientist",
        "description": "Generate 10 AI summaries",
        "icon": "\U0001f4da",
        "xp_reward": 150,
        "max_progress": 10,
        "trigger_type": "stat",
        "trigger_config": {"field": "summaries_generated", "threshold": 10},
    },
    {
        "id": "eu-expert",
        "name": "EU Expert",
        "description": "Reach level 10",
        "icon": "⭐",
        "xp_reward": 500,
        "trigger_type": "level",
        "trigger_config": {"threshold": 10},
    },
    {
        "id": "streak-master",
        "name": "Streak Master",
        "description": "Maintain a 7-day engagement streak",
        "icon": "\U0001f525",
        "xp_reward": 250,
        "max_progress": 7,
        "trigger_type": "streak",
        "trigger_config": {"threshold": 7},
    },
]

ACHIEVEMENTS: dict[str, AchievementDefinition] = {
    entry["id"]: AchievementDefinition(
        id=entry["id"],
        name=entry["name"],
        description=entry["description"],
        icon=entry["icon"],
        xp_reward=entry["xp_reward"],
        max_progress=entry.get("max_progress"),
    )
    for entry in ACHIEVEMENT_DATA
}

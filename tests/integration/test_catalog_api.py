"""Integration tests for the public levels and achievements catalog."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestCatalog:
    @pytest.mark.asyncio
    async def test_levels(self, client: AsyncClient):
        levels = (await client.get("/api/levels")).json()["levels"]
        assert len(levels) == 15
        assert levels[0] == {"level": 1, "title": "Newcomer", "xpRequired": 0}
        assert levels[-1] == {"level": 15, "title": "European Legend", "xpRequired": 75000}

    @pytest.mark.asyncio
    async def test_achievements(self, client: AsyncClient):
        achievements = (await client.get("/api/achievements")).json()["achievements"]
        assert len(achievements) == 12
        first = achievements[0]
        assert first["id"] == "first-steps"
        assert first["xpReward"] == 50
        assert {a["id"] for a in achievements if a["maxProgress"]} >= {"democracy-defender", "streak-master"}

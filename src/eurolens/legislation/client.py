"""EP Open Data API v2 client.

Thin wrapper over ``httpx.AsyncClient``. Every call is read through the
shared ``ResponseCache`` keyed by call name and parameters, so repeated page
loads within the TTL never reach upstream. Failures are not cached.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from eurolens.cache import ResponseCache, cache_key

logger = structlog.get_logger()

JSON_LD = "application/ld+json"


class EuroparlError(Exception):
    """Upstream request failed (transport error, non-2xx, or unreadable body)."""


def _items(payload: Any) -> list[dict[str, Any]]:
    """Records from either the ``data`` or the ``@graph`` envelope."""
    if not isinstance(payload, dict):
        return []
    items = payload.get("data") or payload.get("@graph") or []
    return [item for item in items if isinstance(item, dict)]


class EuroparlClient:
    """Cached reads against ``https://data.europarl.europa.eu/api/v2``."""

    def __init__(self, http: httpx.AsyncClient, cache: ResponseCache, ttl: float = 600.0) -> None:
        self.http = http
        self.cache = cache
        self.ttl = ttl

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = {"format": JSON_LD, **(params or {})}
        try:
            response = await self.http.get(path, params=query, headers={"Accept": JSON_LD})
        except httpx.HTTPError as e:
            msg = f"Request to {path} failed: {e}"
            raise EuroparlError(msg) from e

        if response.status_code >= 400:
            msg = f"Failed to fetch {path}: {response.status_code} {response.reason_phrase}"
            raise EuroparlError(msg)
        try:
            return response.json()
        except ValueError as e:
            msg = f"Invalid JSON from {path}"
            raise EuroparlError(msg) from e

    async def _cached_items(self, key: str, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        async def load() -> list[dict[str, Any]]:
            return _items(await self._get_json(path, params))

        return await self.cache.get_or_load(key, load, self.ttl)

    # --- Procedures ---

    async def list_procedures(self, year: int, limit: int = 30) -> list[dict[str, Any]]:
        return await self._cached_items(
            cache_key("procedures", year, limit),
            "/procedures",
            {"year": year, "offset": 0, "limit": limit},
        )

    async def get_procedure(self, proc_id: str) -> dict[str, Any] | None:
        items = await self._cached_items(cache_key("procedure", proc_id), f"/procedures/{proc_id}")
        return items[0] if items else None

    # --- Meetings ---

    async def list_meetings(self, year: int, limit: int = 50) -> list[dict[str, Any]]:
        return await self._cached_items(
            cache_key("meetings", year, limit),
            "/meetings",
            {"year": year, "offset": 0, "limit": limit},
        )

    async def get_meeting_decisions(self, meeting_id: str) -> list[dict[str, Any]]:
        return await self._cached_items(
            cache_key("decisions", meeting_id),
            f"/meetings/{meeting_id}/decisions",
        )

    # --- Documents ---

    async def get_plenary_document(self, doc_id: str) -> dict[str, Any] | None:
        items = await self._cached_items(cache_key("plenary-document", doc_id), f"/plenary-documents/{doc_id}")
        return items[0] if items else None

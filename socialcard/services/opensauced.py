"""Thin async client for the OpenSauced API (insights, highlights, contributors)."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import httpx

from socialcard.core.config import settings
from socialcard.services.remote import get_json


class OpenSaucedService:
    def __init__(self, client: httpx.AsyncClient, *, base_url: Optional[str] = None):
        self.client = client
        self.base_url = (base_url or settings.OPENSAUCED_API_URL).rstrip("/")

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await get_json(self.client, f"{self.base_url}{path}", params=params)

    async def get_insight(self, insight_id: int) -> Dict[str, Any]:
        return await self._get(f"/v1/insights/{insight_id}")

    async def search_contributors(self, repo_ids: Iterable[int]) -> List[Dict[str, Any]]:
        data = await self._get(
            "/v1/contributors/search",
            params={"repoIds": ",".join(str(repo_id) for repo_id in repo_ids)},
        )
        # paginated responses wrap the rows in "data"
        if isinstance(data, dict):
            return data.get("data", [])
        return data

    async def get_highlight(self, highlight_id: int) -> Dict[str, Any]:
        return await self._get(f"/v1/user/highlights/{highlight_id}")

    async def get_highlight_reactions(self, highlight_id: int) -> List[Dict[str, Any]]:
        return await self._get(f"/v1/highlights/{highlight_id}/reactions")

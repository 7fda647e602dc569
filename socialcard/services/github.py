"""Thin async client for the GitHub REST endpoints the cards read."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from socialcard.core.config import settings
from socialcard.services.remote import get_json


class GithubService:
    def __init__(self, client: httpx.AsyncClient, *, base_url: Optional[str] = None, token: Optional[str] = None):
        self.client = client
        self.base_url = (base_url or settings.GITHUB_API_URL).rstrip("/")
        self.token = token if token is not None else settings.GITHUB_TOKEN

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "socialcard",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await get_json(self.client, f"{self.base_url}{path}", params=params, headers=self._headers())

    async def rate_limit(self) -> Dict[str, int]:
        """Core API budget: {"limit", "remaining", "reset"}."""
        data = await self._get("/rate_limit")
        core = data.get("resources", {}).get("core") or data.get("rate") or {}
        return {
            "limit": int(core.get("limit", 0)),
            "remaining": int(core.get("remaining", 0)),
            "reset": int(core.get("reset", 0)),
        }

    async def get_user(self, login: str) -> Dict[str, Any]:
        return await self._get(f"/users/{login}")

    async def get_user_repos(self, login: str, limit: int = 10) -> List[Dict[str, Any]]:
        # most recently pushed first, forks excluded by the caller
        return await self._get(
            f"/users/{login}/repos",
            params={"sort": "pushed", "direction": "desc", "per_page": limit, "type": "owner"},
        )

    async def get_repo(self, owner: str, repo: str) -> Dict[str, Any]:
        return await self._get(f"/repos/{owner}/{repo}")

    async def get_repo_languages(self, owner: str, repo: str) -> Dict[str, int]:
        """Bytes of code per language."""
        return await self._get(f"/repos/{owner}/{repo}/languages")

"""Shared JSON GET for the remote data APIs.

Every failure is raised as RemoteFetchError. Nothing is retried.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from socialcard.core.errors import RemoteFetchError


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Any:
    try:
        response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise RemoteFetchError(f"GET {url} returned {status}", upstream_status=status) from exc
    except httpx.HTTPError as exc:
        raise RemoteFetchError(f"GET {url} failed: {exc.__class__.__name__}") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise RemoteFetchError(f"GET {url} returned invalid JSON") from exc

"""
Health API for the card service.

Lightweight liveness endpoint; no remote dependencies are touched.
"""

from fastapi import APIRouter

from socialcard.core.config import settings

root_router = APIRouter(tags=["health"])


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok", "env": settings.ENV}

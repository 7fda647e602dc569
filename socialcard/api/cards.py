"""
socialcard/api/cards.py
Card endpoints: redirect to a fresh PNG for a user, highlight or insight page.

GET  regenerates the card when the stored copy is stale, then redirects.
HEAD only reports the freshness of the stored copy in x-amz-meta-* headers.
"""

import re

from fastapi import APIRouter, Depends, Path, Request, Response
from fastapi.responses import RedirectResponse

from socialcard.core.errors import ValidationError
from socialcard.core.logging import CardLogger
from socialcard.features.cards.models import RequiresUpdateMeta
from socialcard.features.cards.registry import CardServices
from socialcard.features.cards.service import CardService

router = APIRouter(tags=["cards"])

GITHUB_LOGIN_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")


def get_card_services(request: Request) -> CardServices:
    """Services built in the app lifespan. Tests override this dependency."""
    return request.app.state.card_services


def _card_logger(request: Request, service: CardService, subject) -> CardLogger:
    return CardLogger(service.kind, subject, request_id=getattr(request.state, "request_id", None))


def _meta_headers(meta: RequiresUpdateMeta) -> dict:
    headers = {
        "x-amz-meta-location": meta.file_url,
        "x-amz-meta-needs-update": str(meta.needs_update).lower(),
    }
    if meta.last_modified:
        headers["x-amz-meta-last-modified"] = meta.last_modified.isoformat()
    return headers


async def _redirect_to_card(request: Request, service: CardService, subject) -> RedirectResponse:
    log = _card_logger(request, service, subject)
    meta = await service.check_requires_update(subject, log=log)
    if not meta.needs_update:
        return RedirectResponse(meta.file_url, status_code=302)

    url = await service.get_card(subject, log=log)
    return RedirectResponse(url, status_code=302)


async def _card_meta(request: Request, service: CardService, subject) -> Response:
    meta = await service.check_requires_update(subject, log=_card_logger(request, service, subject))
    return Response(status_code=204, headers=_meta_headers(meta))


def _valid_username(username: str) -> str:
    if not GITHUB_LOGIN_RE.match(username):
        raise ValidationError("Invalid GitHub username")
    return username


@router.head("/users/{username}")
async def head_user_card(request: Request, username: str, services: CardServices = Depends(get_card_services)):
    return await _card_meta(request, services.users, _valid_username(username))


@router.get("/users/{username}")
async def get_user_card(request: Request, username: str, services: CardServices = Depends(get_card_services)):
    return await _redirect_to_card(request, services.users, _valid_username(username))


@router.head("/highlights/{highlight_id}")
async def head_highlight_card(
    request: Request,
    highlight_id: int = Path(..., gt=0),
    services: CardServices = Depends(get_card_services),
):
    return await _card_meta(request, services.highlights, highlight_id)


@router.get("/highlights/{highlight_id}")
async def get_highlight_card(
    request: Request,
    highlight_id: int = Path(..., gt=0),
    services: CardServices = Depends(get_card_services),
):
    return await _redirect_to_card(request, services.highlights, highlight_id)


@router.head("/insights/{insight_id}")
async def head_insight_card(
    request: Request,
    insight_id: int = Path(..., gt=0),
    services: CardServices = Depends(get_card_services),
):
    return await _card_meta(request, services.insights, insight_id)


@router.get("/insights/{insight_id}")
async def get_insight_card(
    request: Request,
    insight_id: int = Path(..., gt=0),
    services: CardServices = Depends(get_card_services),
):
    return await _redirect_to_card(request, services.insights, insight_id)

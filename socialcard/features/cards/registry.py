"""Wiring of the three card services around one HTTP client and one bucket."""

from dataclasses import dataclass
from typing import Optional

import httpx

from socialcard.core.config import Settings, settings
from socialcard.features.cards.highlight import HighlightCardService
from socialcard.features.cards.insight import InsightCardService
from socialcard.features.cards.render import CardRenderer
from socialcard.features.cards.user import UserCardService
from socialcard.services.github import GithubService
from socialcard.services.opensauced import OpenSaucedService
from socialcard.services.storage import S3FileStorageService


@dataclass
class CardServices:
    users: UserCardService
    highlights: HighlightCardService
    insights: InsightCardService


def build_http_client(cfg: Optional[Settings] = None) -> httpx.AsyncClient:
    cfg = cfg or settings
    return httpx.AsyncClient(timeout=cfg.HTTP_TIMEOUT_SECONDS, follow_redirects=True)


def build_card_services(
    http_client: httpx.AsyncClient,
    *,
    storage: Optional[S3FileStorageService] = None,
    renderer: Optional[CardRenderer] = None,
    cfg: Optional[Settings] = None,
) -> CardServices:
    cfg = cfg or settings
    github = GithubService(http_client, base_url=cfg.GITHUB_API_URL, token=cfg.GITHUB_TOKEN)
    opensauced = OpenSaucedService(http_client, base_url=cfg.OPENSAUCED_API_URL)
    storage = storage or S3FileStorageService.from_settings(cfg)
    renderer = renderer or CardRenderer(font_path=cfg.CARD_FONT_PATH)

    def make(cls):
        return cls(github, opensauced, storage, renderer, min_remaining=cfg.RATE_LIMIT_MIN_REMAINING)

    return CardServices(
        users=make(UserCardService),
        highlights=make(HighlightCardService),
        insights=make(InsightCardService),
    )

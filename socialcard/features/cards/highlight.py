"""Highlight cards: a user's highlighted contribution, its repo and reactions."""

import asyncio
import textwrap
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from socialcard.core.errors import NotFoundError
from socialcard.features.cards.models import HighlightCardData, LanguageShare, RepoAvatar
from socialcard.features.cards.service import CardService
from socialcard.features.cards.view import ELLIPSIS, language_bar, sized_avatar, truncate_name, truncate_text

REACTIONS_META_KEY = "reactions-count"


def parse_repo_url(url: str) -> Optional[Tuple[str, str]]:
    """("owner", "repo") from any github.com URL under a repository."""
    parsed = urlparse(url)
    if parsed.netloc.lower() not in {"github.com", "www.github.com"}:
        return None
    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        return None
    return parts[0], parts[1]


def wrap_body(body: str, width: int = 62, max_lines: int = 2) -> List[str]:
    lines = textwrap.wrap(" ".join(body.split()), width=width)
    if len(lines) <= max_lines:
        return lines
    shown = lines[:max_lines]
    shown[-1] = f"{shown[-1][:width - len(ELLIPSIS)].rstrip()}{ELLIPSIS}"
    return shown


class HighlightCardService(CardService[HighlightCardData]):
    kind = "highlights"
    label = "Highlight"
    template_name = "highlight_card.svg.j2"

    LANGUAGE_LIMIT = 5

    async def fetch_metadata(self, highlight_id: int) -> HighlightCardData:
        highlight = await self.opensauced.get_highlight(highlight_id)
        repo_ref = parse_repo_url(highlight.get("url") or "")
        if repo_ref is None:
            raise NotFoundError(f"Highlight {highlight_id} does not point at a GitHub repository")
        owner, repo_name = repo_ref

        user, repo, languages, reactions = await asyncio.gather(
            self.github.get_user(highlight["login"]),
            self.github.get_repo(owner, repo_name),
            self.github.get_repo_languages(owner, repo_name),
            self.opensauced.get_highlight_reactions(highlight_id),
        )

        return HighlightCardData(
            login=highlight["login"],
            title=highlight.get("title") or repo["full_name"],
            body=highlight.get("highlight") or "",
            reactions=sum(int(reaction.get("reaction_count") or 0) for reaction in reactions),
            avatar_url=user["avatar_url"],
            repo=RepoAvatar(repo_name=repo["name"], avatar_url=repo["owner"]["avatar_url"]),
            langs=[LanguageShare(name=name, size=size) for name, size in languages.items()],
            url=highlight["url"],
            updated_at=highlight["updated_at"],
        )

    def build_view(self, data: HighlightCardData) -> Dict[str, Any]:
        return {
            "login": data.login,
            "title": truncate_text(data.title, 40),
            "body_lines": wrap_body(data.body),
            "avatar_url": sized_avatar(data.avatar_url, 80),
            "repo": {"name": truncate_name(data.repo.repo_name), "avatar_url": sized_avatar(data.repo.avatar_url, 40)},
            "reactions": data.reactions,
            "languages": language_bar(data.langs, 1040, limit=self.LANGUAGE_LIMIT),
        }

    def upload_metadata(self, data: HighlightCardData) -> Optional[Dict[str, str]]:
        return {REACTIONS_META_KEY: str(data.reactions)}

    async def stored_copy_matches(self, key: str, data: HighlightCardData) -> bool:
        # a new reaction changes the card without touching updated_at
        meta = await self.storage.get_file_meta(key) or {}
        return meta.get(REACTIONS_META_KEY, "0") == str(data.reactions)

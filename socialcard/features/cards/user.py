"""User profile cards: avatar, name, recent repositories and top languages."""

import asyncio
from collections import Counter
from typing import Any, Dict, List

from socialcard.features.cards.models import LanguageShare, RepoAvatar, UserCardData
from socialcard.features.cards.service import CardService
from socialcard.features.cards.view import (
    compact_count,
    language_bar,
    limit_with_overflow,
    sized_avatar,
    truncate_name,
    truncate_text,
)


def _languages_by_size(repos: List[Dict[str, Any]]) -> List[LanguageShare]:
    sizes: Counter = Counter()
    for repo in repos:
        if repo.get("language"):
            # empty repos report size 0 but still count for something
            sizes[repo["language"]] += max(int(repo.get("size") or 0), 1)
    return [LanguageShare(name=name, size=size) for name, size in sizes.most_common()]


class UserCardService(CardService[UserCardData]):
    kind = "users"
    label = "User"
    template_name = "user_card.svg.j2"

    REPO_FETCH_LIMIT = 30
    REPO_LIMIT = 2
    LANGUAGE_LIMIT = 5

    async def fetch_metadata(self, username: str) -> UserCardData:
        user, repos = await asyncio.gather(
            self.github.get_user(username),
            self.github.get_user_repos(username, limit=self.REPO_FETCH_LIMIT),
        )
        own_repos = [repo for repo in repos if not repo.get("fork")]

        return UserCardData(
            login=user["login"],
            name=user.get("name") or user["login"],
            avatar_url=user["avatar_url"],
            bio=user.get("bio"),
            followers=user.get("followers", 0),
            public_repos=user.get("public_repos", 0),
            repos=[
                RepoAvatar(repo_name=repo["name"], avatar_url=repo["owner"]["avatar_url"])
                for repo in own_repos
            ],
            langs=_languages_by_size(own_repos),
            updated_at=user["updated_at"],
        )

    def build_view(self, data: UserCardData) -> Dict[str, Any]:
        repos, repos_overflow = limit_with_overflow(data.repos, self.REPO_LIMIT)
        return {
            "login": data.login,
            "name": truncate_text(data.name, 28),
            "avatar_url": sized_avatar(data.avatar_url, 140),
            "bio": truncate_text(data.bio, 70) if data.bio else None,
            "followers": compact_count(data.followers),
            "public_repos": compact_count(data.public_repos),
            "repos": [
                {"name": truncate_name(repo.repo_name), "avatar_url": sized_avatar(repo.avatar_url, 40)}
                for repo in repos
            ],
            "repos_overflow": repos_overflow,
            "languages": language_bar(data.langs, 1040, limit=self.LANGUAGE_LIMIT),
        }

"""Insight page cards: page name, its repositories and their contributors."""

from typing import Any, Dict

from socialcard.features.cards.models import InsightCardData, RepoAvatar
from socialcard.features.cards.service import CardService
from socialcard.features.cards.view import github_avatar, limit_with_overflow, sized_avatar, truncate_name, truncate_text


class InsightCardService(CardService[InsightCardData]):
    kind = "insights"
    label = "Insight"
    template_name = "insight_card.svg.j2"

    REPO_LIMIT = 3
    CONTRIBUTOR_LIMIT = 12
    PAGE_NAME_BUDGET = 36

    async def fetch_metadata(self, insight_id: int) -> InsightCardData:
        insight = await self.opensauced.get_insight(insight_id)
        repos = insight.get("repos") or []

        contributors = []
        if repos:
            rows = await self.opensauced.search_contributors(repo["repo_id"] for repo in repos)
            contributors = [row["author_login"] for row in rows if row.get("author_login")]

        repositories = []
        for repo in repos:
            owner, _, repo_name = repo["full_name"].partition("/")
            repositories.append(RepoAvatar(repo_name=repo_name or owner, avatar_url=f"https://github.com/{owner}.png"))

        return InsightCardData(
            page_name=insight.get("name") or f"Insight {insight_id}",
            repos=repositories,
            contributors=contributors,
            updated_at=insight["updated_at"],
        )

    def build_view(self, data: InsightCardData) -> Dict[str, Any]:
        repos, repos_overflow = limit_with_overflow(data.repos, self.REPO_LIMIT)
        contributors, contributors_overflow = limit_with_overflow(data.contributors, self.CONTRIBUTOR_LIMIT)
        return {
            "page_name": truncate_text(data.page_name, self.PAGE_NAME_BUDGET),
            "repos": [
                {"name": truncate_name(repo.repo_name), "avatar_url": sized_avatar(repo.avatar_url, 50)}
                for repo in repos
            ],
            "repos_overflow": repos_overflow,
            "contributors": [
                {"login": login, "avatar_url": github_avatar(login, 60)}
                for login in contributors
            ],
            "contributors_overflow": contributors_overflow,
        }

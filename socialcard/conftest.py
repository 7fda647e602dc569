# socialcard/conftest.py
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("ENV", "test")

from socialcard.core.config import Settings
from socialcard.core.errors import StorageError
from socialcard.features.cards.registry import build_card_services
from socialcard.features.cards.render import CardRenderer

GITHUB = "https://api.github.test"
OPENSAUCED = "https://api.opensauced.test"
CDN = "https://cdn.test/social-cards/"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"

T = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeApi:
    """Routes httpx requests to canned JSON, keyed by full URL without query."""

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests = []

    def add(self, url: str, payload: Any = None, status: int = 200):
        self.routes[url] = (status, payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        status, payload = self.routes[key]
        if isinstance(payload, Exception):
            raise payload
        return httpx.Response(status, json=payload)

    def paths(self):
        return [request.url.path for request in self.requests]

    def rate_limit(self, remaining: int):
        self.add(f"{GITHUB}/rate_limit", {"resources": {"core": {"limit": 5000, "remaining": remaining, "reset": 0}}})

    def insight(self, insight_id: int, updated_at: str = "2024-01-01T00:00:00.000Z", repos=None, contributors=None):
        repos = repos if repos is not None else [
            {"repo_id": 1, "full_name": "open-sauced/app"},
            {"repo_id": 2, "full_name": "open-sauced/api"},
        ]
        self.add(f"{OPENSAUCED}/v1/insights/{insight_id}", {
            "id": insight_id,
            "name": "Open Source Friends",
            "repos": repos,
            "updated_at": updated_at,
        })
        self.add(
            f"{OPENSAUCED}/v1/contributors/search",
            [{"author_login": login} for login in (contributors or ["bdougie", "defunkt"])],
        )

    def user(self, login: str, updated_at: str = "2024-01-01T00:00:00Z"):
        self.add(f"{GITHUB}/users/{login}", {
            "login": login,
            "name": login.capitalize(),
            "avatar_url": f"https://avatars.githubusercontent.com/{login}?v=4",
            "bio": "Open source <3",
            "followers": 1234,
            "public_repos": 42,
            "updated_at": updated_at,
        })
        self.add(f"{GITHUB}/users/{login}/repos", [
            {"name": "app", "fork": False, "language": "TypeScript", "size": 300, "owner": {"avatar_url": "https://avatars.test/o?v=4"}},
            {"name": "pizza-cli-with-long-name", "fork": False, "language": "Go", "size": 100, "owner": {"avatar_url": "https://avatars.test/o?v=4"}},
            {"name": "docs", "fork": False, "language": "MDX", "size": 50, "owner": {"avatar_url": "https://avatars.test/o?v=4"}},
            {"name": "forked", "fork": True, "language": "C", "size": 9000, "owner": {"avatar_url": "https://avatars.test/x?v=4"}},
        ])

    def highlight(self, highlight_id: int, reactions=(3, 2), updated_at: str = "2024-01-01T00:00:00Z"):
        self.add(f"{OPENSAUCED}/v1/user/highlights/{highlight_id}", {
            "id": highlight_id,
            "login": "bdougie",
            "title": "Shipped highlights",
            "highlight": "Added social cards for highlights so they can be shared everywhere.",
            "url": "https://github.com/open-sauced/app/pull/1",
            "updated_at": updated_at,
        })
        self.add(
            f"{OPENSAUCED}/v1/highlights/{highlight_id}/reactions",
            [{"emoji_id": str(i), "reaction_count": str(count)} for i, count in enumerate(reactions)],
        )
        self.user("bdougie")
        self.add(f"{GITHUB}/repos/open-sauced/app", {
            "name": "app",
            "full_name": "open-sauced/app",
            "owner": {"avatar_url": "https://avatars.test/open-sauced?v=4"},
        })
        self.add(f"{GITHUB}/repos/open-sauced/app/languages", {"TypeScript": 900, "CSS": 100})


class FakeStorage:
    """In-memory stand-in for S3FileStorageService."""

    def __init__(self, cdn_endpoint: str = CDN):
        self.cdn_endpoint = cdn_endpoint
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.uploads = []
        self.fail_upload = False

    def put(self, key: str, last_modified: datetime, metadata: Optional[Dict[str, str]] = None):
        self.objects[key] = {"body": PNG_BYTES, "last_modified": last_modified, "metadata": metadata or {}}

    def get_cdn_endpoint(self) -> str:
        return self.cdn_endpoint

    def file_url(self, key: str) -> str:
        return f"{self.cdn_endpoint}{key}"

    async def file_exists(self, key: str) -> bool:
        return key in self.objects

    async def get_file_last_modified(self, key: str):
        obj = self.objects.get(key)
        return obj["last_modified"] if obj else None

    async def get_file_meta(self, key: str):
        obj = self.objects.get(key)
        return obj["metadata"] if obj else None

    async def upload_file(self, body: bytes, key: str, content_type: str, metadata=None):
        if self.fail_upload:
            raise StorageError(f"put_object failed for {key}")
        self.uploads.append({"key": key, "body": body, "content_type": content_type, "metadata": metadata})
        self.put(key, datetime.now(timezone.utc), metadata)


class FakeRasterRenderer(CardRenderer):
    """Real templates, canned PNG bytes (no libcairo needed)."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.rasterized = []

    def rasterize(self, svg: str) -> bytes:
        self.rasterized.append(svg)
        return PNG_BYTES


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def fake_renderer():
    return FakeRasterRenderer()


@pytest.fixture
def test_settings():
    return Settings(
        GITHUB_API_URL=GITHUB,
        OPENSAUCED_API_URL=OPENSAUCED,
        GITHUB_TOKEN="ghp_test",
        CDN_ENDPOINT=CDN,
        RATE_LIMIT_MIN_REMAINING=1000,
        CARD_FONT_PATH=None,
    )


@pytest.fixture
def card_services(fake_api, fake_storage, fake_renderer, test_settings):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))
    return build_card_services(http_client, storage=fake_storage, renderer=fake_renderer, cfg=test_settings)


@pytest.fixture
def client(card_services):
    from socialcard.api.cards import get_card_services
    from socialcard.main import app

    app.dependency_overrides[get_card_services] = lambda: card_services
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_card_services, None)

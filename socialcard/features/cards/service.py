"""
Social cards - Freshness and generation service

One CardService subclass per card kind. The base class owns the parts every
kind shares:
- check_requires_update: is the stored PNG newer than the remote data?
- get_card: rate-limit gate, fetch, render, upload, public URL
- per-key single flight so one process never renders the same card twice
  at the same time
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from socialcard.core.config import settings
from socialcard.core.errors import (
    CardGenerationError,
    NotFoundError,
    RateLimitExceededError,
    RemoteFetchError,
    RenderError,
)
from socialcard.core.logging import CardLogger
from socialcard.features.cards.models import CardBuffers, CardData, RequiresUpdateMeta
from socialcard.features.cards.render import CardRenderer
from socialcard.services.github import GithubService
from socialcard.services.opensauced import OpenSaucedService
from socialcard.services.storage import S3FileStorageService

DataT = TypeVar("DataT", bound=CardData)


class CardService(Generic[DataT]):
    """Base for the user, highlight and insight card services.

    Subclasses set `kind` (the storage prefix), `label`, `template_name`
    and implement fetch_metadata() and build_view().
    """

    kind = "cards"
    label = "Card"
    template_name = ""

    def __init__(
        self,
        github: GithubService,
        opensauced: OpenSaucedService,
        storage: S3FileStorageService,
        renderer: CardRenderer,
        *,
        min_remaining: Optional[int] = None,
    ):
        self.github = github
        self.opensauced = opensauced
        self.storage = storage
        self.renderer = renderer
        self.min_remaining = settings.RATE_LIMIT_MIN_REMAINING if min_remaining is None else min_remaining
        self._inflight: Dict[str, "asyncio.Task[str]"] = {}

    # -- hooks ---------------------------------------------------------------

    async def fetch_metadata(self, subject: Any) -> DataT:
        raise NotImplementedError

    def build_view(self, data: DataT) -> Dict[str, Any]:
        raise NotImplementedError

    def upload_metadata(self, data: DataT) -> Optional[Dict[str, str]]:
        """Object metadata stored next to the PNG."""
        return None

    async def stored_copy_matches(self, key: str, data: DataT) -> bool:
        """Extra freshness condition beyond timestamps."""
        return True

    # -- generation ----------------------------------------------------------

    def storage_key(self, subject: Any) -> str:
        return f"{self.kind}/{subject}.png"

    def _logger(self, subject: Any, log: Optional[CardLogger]) -> CardLogger:
        return log or CardLogger(self.kind, subject)

    async def render(self, data: DataT) -> CardBuffers:
        try:
            view = self.build_view(data)
        except Exception as exc:
            raise RenderError(f"Could not build the {self.kind} view: {exc}") from exc
        return await self.renderer.render(self.template_name, view)

    async def load_metadata(self, subject: Any) -> DataT:
        """fetch_metadata, with a malformed upstream payload reported as a remote failure."""
        try:
            return await self.fetch_metadata(subject)
        except (KeyError, TypeError, AttributeError, PydanticValidationError) as exc:
            raise RemoteFetchError(f"{self.label} {subject} returned an unexpected payload: {exc}") from exc

    async def generate_card_buffer(self, subject: Any) -> CardBuffers:
        """Fetch and render without touching storage. Used by local scripts."""
        return await self.render(await self.load_metadata(subject))

    async def check_requires_update(self, subject: Any, log: Optional[CardLogger] = None) -> RequiresUpdateMeta:
        log = self._logger(subject, log)
        key = self.storage_key(subject)
        file_url = self.storage.file_url(key)
        has_file = await self.storage.file_exists(key)

        if not has_file:
            return RequiresUpdateMeta(file_url=file_url, has_file=False)

        last_modified: Optional[datetime] = await self.storage.get_file_last_modified(key)
        data = await self.load_metadata(subject)

        needs_update = True
        if last_modified and last_modified > data.updated_at and await self.stored_copy_matches(key, data):
            log.debug(
                "%s %s exists with lastModified %s newer than updated_at %s, reusing %s",
                self.label,
                subject,
                last_modified.isoformat(),
                data.updated_at.isoformat(),
                file_url,
            )
            needs_update = False

        return RequiresUpdateMeta(
            file_url=file_url,
            has_file=True,
            needs_update=needs_update,
            last_modified=last_modified,
        )

    async def get_card(self, subject: Any, log: Optional[CardLogger] = None) -> str:
        """Regenerate and upload the card, returning its public URL.

        Always overwrites the stored copy. Concurrent calls for the same key
        share one generation.
        """
        log = self._logger(subject, log)
        key = self.storage_key(subject)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._regenerate(subject, key, log))
            self._inflight[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            log.debug("%s %s generation already in flight, joining", self.label, subject)

        return await asyncio.shield(task)

    def _forget(self, key: str, task: "asyncio.Task[str]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # callers may all have been cancelled; mark the failure as retrieved
        if not task.cancelled():
            task.exception()

    async def _regenerate(self, subject: Any, key: str, log: CardLogger) -> str:
        budget = await self.github.rate_limit()
        if budget["remaining"] < self.min_remaining:
            log.warning("GitHub rate limit budget %s below %s, refusing to render", budget["remaining"], self.min_remaining)
            raise RateLimitExceededError("Rate limit exceeded")

        data = await self.load_metadata(subject)

        try:
            await self._render_and_upload(key, data)
        except CardGenerationError as exc:
            log.error("Error generating %s card for %s at %s stage", self.label.lower(), subject, exc.stage, exc_info=exc.cause)
            raise NotFoundError(f"{self.label} card not found") from exc

        file_url = self.storage.file_url(key)
        log.debug("%s %s generated and uploaded, redirecting to %s", self.label, subject, file_url)
        return file_url

    async def _render_and_upload(self, key: str, data: DataT) -> None:
        try:
            buffers = await self.render(data)
        except Exception as exc:
            raise CardGenerationError("render", exc) from exc

        try:
            await self.storage.upload_file(buffers.png, key, "image/png", metadata=self.upload_metadata(data))
        except Exception as exc:
            raise CardGenerationError("storage", exc) from exc

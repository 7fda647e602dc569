"""
Social cards - Local batch generation

Renders a list of cards to <out_dir>/<subject>.svg for visual inspection.
Every subject is attempted; the batch fails afterwards if any one failed.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, List

from socialcard.core.errors import BatchGenerationError
from socialcard.core.logging import log_event
from socialcard.features.cards.service import CardService


async def generate_svgs(
    service: CardService,
    subjects: Iterable[Any],
    out_dir: Path,
    *,
    concurrency: int = 4,
) -> List[Path]:
    """Generate one SVG per subject, at most `concurrency` at a time.

    Returns the written paths in subject order. Raises BatchGenerationError
    listing every failed subject once all of them have been attempted.
    """
    subjects = list(subjects)
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def generate_one(subject: Any) -> Path:
        async with semaphore:
            buffers = await service.generate_card_buffer(subject)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{subject}.svg"
        await asyncio.to_thread(path.write_text, buffers.svg, encoding="utf-8")
        return path

    results = await asyncio.gather(*(generate_one(subject) for subject in subjects), return_exceptions=True)

    written: List[Path] = []
    failures: Dict[Any, BaseException] = {}
    for subject, result in zip(subjects, results):
        if isinstance(result, BaseException):
            failures[subject] = result
            log_event(
                "error",
                "batch.card_failed",
                request_id=None,
                card_kind=service.kind,
                subject=str(subject),
                error_code=getattr(result, "code", result.__class__.__name__),
                extra={"error": result},
            )
        else:
            written.append(result)

    if failures:
        raise BatchGenerationError(failures)
    return written


async def run_batch(kind: str, subjects: Iterable[Any], out_dir: Path, *, concurrency: int) -> List[Path]:
    """Build the services against the configured APIs and run one batch."""
    from socialcard.features.cards.registry import build_card_services, build_http_client

    async with build_http_client() as http_client:
        services = build_card_services(http_client)
        return await generate_svgs(getattr(services, kind), subjects, out_dir, concurrency=concurrency)

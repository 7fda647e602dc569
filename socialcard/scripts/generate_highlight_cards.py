#!/usr/bin/env python3
"""
Render highlight cards to local SVG files for visual inspection.

Usage:
    python -m socialcard.scripts.generate_highlight_cards [--out dist] [highlight_id ...]

Not part of the request path: nothing is uploaded.
"""
import argparse
import asyncio
import sys
from pathlib import Path

from socialcard.core.config import settings
from socialcard.core.errors import BatchGenerationError
from socialcard.core.logging import configure_logging
from socialcard.features.cards.batch import run_batch

DEFAULT_HIGHLIGHT_IDS = [102, 101, 103]


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render highlight cards to local SVG files.")
    parser.add_argument("highlight_ids", nargs="*", type=int, default=DEFAULT_HIGHLIGHT_IDS, help="Highlight ids to render.")
    parser.add_argument("--out", type=Path, default=Path("dist"), help="Output folder for the SVG files.")
    parser.add_argument("--concurrency", type=int, default=settings.BATCH_CONCURRENCY, help="Cards rendered at once.")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    configure_logging(settings.ENV)
    args = parse_args(argv)

    try:
        written = asyncio.run(run_batch("highlights", args.highlight_ids, args.out, concurrency=args.concurrency))
    except BatchGenerationError as exc:
        print(f"[ERROR] {exc.message}", file=sys.stderr)
        return 1

    for path in written:
        print(f"[OK] {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

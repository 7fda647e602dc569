#!/usr/bin/env python3
"""
Server startup wrapper for the social card service.

Usage:
    python -m socialcard.start_server [--host 0.0.0.0] [--port 8000]
"""
import argparse
import sys

import uvicorn


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the social card API.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only).")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    print(f"[socialcard] Serving on http://{args.host}:{args.port}")
    try:
        uvicorn.run(
            "socialcard.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n[socialcard] Shutting down...")
    return 0


if __name__ == "__main__":
    sys.exit(main())

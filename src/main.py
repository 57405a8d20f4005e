"""Entry-point to serve the crypto tracker API.

Run from project root:
    python src/main.py --port 4000

Reads PORT/HOST and the database settings from resources/.env when present.
"""
from __future__ import annotations

import argparse

import uvicorn

from config import get_host, get_log_level, get_port, load_env_file


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the crypto tracker API")
    parser.add_argument("--host", dest="host", default=None, help="Bind address (default HOST or 0.0.0.0)")
    parser.add_argument("--port", dest="port", type=int, default=None, help="Listen port (default PORT or 4000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    return parser.parse_args()


def main() -> int:
    # Load environment variables from resources/.env if available
    load_env_file()

    args = parse_args()
    uvicorn.run(
        "app:app",
        host=args.host or get_host(),
        port=args.port or get_port(),
        reload=args.reload,
        log_level=get_log_level().lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Development entrypoint for the Focustown HTTP API."""

from __future__ import annotations

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the Focustown town and sync API")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="TCP port to listen on")
    parser.add_argument("--database-url", help="Override FOCUSTOWN_DATABASE_URL")
    parser.add_argument(
        "--auto-sync",
        action="store_true",
        help="Run the periodic sync timer alongside the API",
    )
    parser.add_argument("--reload", action="store_true", help="Enable autoreload (dev mode)")
    args = parser.parse_args()

    # settings are read when the app module is imported
    if args.database_url:
        os.environ["FOCUSTOWN_DATABASE_URL"] = args.database_url
    if args.auto_sync:
        os.environ["FOCUSTOWN_AUTO_SYNC_ENABLED"] = "true"

    if args.reload:
        uvicorn.run("focustown.api.app:app", host=args.host, port=args.port, reload=True)
        return

    from focustown.api.app import app

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

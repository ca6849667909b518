# start_app.py
"""Load settings and launch the API server."""

from __future__ import annotations

import argparse
import os

import uvicorn
from dotenv import load_dotenv

import config


def main(argv: list[str] | None = None) -> None:
    """Load environment overrides, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    parser.add_argument(
        "--reload", action="store_true", help="Reload on source changes"
    )
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file
    config.get_settings.cache_clear()

    uvicorn.run(
        "asset_api.app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()

"""
Gemini entry point for the feed mirror.

Routes
──────
/                   Latest post
/timeline           Last 10 posts
/select_tweet       Prompt for an offset, then show that post

Usage:
    python server/app.py --config config.yml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Allow running as `python server/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config.settings import Settings
from core.cache import FeedCache
from core.errors import ConfigError
from core.fetcher import TwitterFetcher
from core.router import RequestRouter
from server.gemini import GeminiServer, build_ssl_context

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "config.yml"


def load_settings(path: str | None) -> Settings:
    """Load settings from *path*, or from the environment alone.

    Without an explicit path, ``config.yml`` is used when it exists.

    Raises:
        ConfigError: If the file is unreadable or required values are missing.
    """
    if path is None and Path(DEFAULT_CONFIG).is_file():
        path = DEFAULT_CONFIG
    settings = Settings.from_yaml(path) if path else Settings()
    settings.validate()
    return settings


def build_app(settings: Settings) -> tuple[FeedCache, GeminiServer]:
    """Wire the fetcher, cache, router and server together."""
    cache = FeedCache.from_settings(TwitterFetcher(settings), settings)
    router = RequestRouter.from_settings(cache, settings)
    server = GeminiServer(
        router,
        settings.host,
        settings.port,
        build_ssl_context(settings.cert_file, settings.key_file),
    )
    return cache, server


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Mirror a Twitter timeline over Gemini.")
    parser.add_argument("--config", default=None, help="Location of config file")
    args = parser.parse_args(argv)

    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    try:
        settings = load_settings(args.config)
        cache, server = build_app(settings)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 1

    cache.start()
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        cache.stop(timeout=5)
    return 0


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    sys.exit(main())

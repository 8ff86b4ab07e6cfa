"""Content loader — command-line front end.

Usage:
    python main.py [--clear-cache] [--raw] [--base-url URL] [KEY ...]

Steps:
  1. Open the disk-backed resource cache (namespace/version from config)
  2. Optionally purge every cached entry under the namespace
  3. Load each KEY through the cache, fetching from the content origin on a miss
  4. Print JSON resources pretty-printed, raw resources verbatim
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import config
from cache.resource_cache import ResourceCache
from cache.storage import DiskStore
from content.client import make_http_client
from content.loader import LoadMode, ResourceLoader

logger = logging.getLogger("main")


def make_cache() -> ResourceCache:
    return ResourceCache(
        DiskStore(config.CACHE_DIR),
        namespace=config.CACHE_NAMESPACE,
        version=config.CACHE_VERSION,
        ttl_ms=config.CACHE_TTL_MS,
    )


def _render(value: object, mode: LoadMode) -> str:
    if mode is LoadMode.RAW:
        return str(value)
    return json.dumps(value, indent=2, ensure_ascii=False)


async def run(keys: list[str], mode: LoadMode, cache: ResourceCache, base_url: str | None) -> int:
    """Load and print every key; return the number of keys that failed."""
    failures = 0
    async with ResourceLoader(cache, make_http_client(base_url)) as loader:
        for key in keys:
            value = await loader.load(key, mode)
            if value is None:
                failures += 1
                continue
            print(_render(value, mode))
    return failures


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch site content through the resource cache")
    parser.add_argument("keys", nargs="*", metavar="KEY", help="Resource path or URL to load")
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear all cached resources before loading",
    )
    parser.add_argument("--raw", action="store_true", help="Treat resources as text, not JSON")
    parser.add_argument("--base-url", default=None, help="Override CONTENT_BASE_URL")
    args = parser.parse_args(argv)

    if not args.keys and not args.clear_cache:
        parser.error("nothing to do: give at least one KEY or --clear-cache")

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    cache = make_cache()
    if args.clear_cache:
        cache.clear_all()

    if not args.keys:
        return 0

    mode = LoadMode.RAW if args.raw else LoadMode.STRUCTURED
    failures = asyncio.run(run(args.keys, mode, cache, args.base_url))
    if failures:
        logger.warning("%d of %d resources failed to load.", failures, len(args.keys))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Fetch-or-serve loader for site content.

Every page renderer goes through `ResourceLoader.load`: serve from the
cache when possible, otherwise GET the resource, parse it and remember it.
Failures never propagate; the caller gets None and renders an empty
section instead.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any

import httpx

from cache.resource_cache import ResourceCache

logger = logging.getLogger(__name__)


class LoadMode(enum.Enum):
    STRUCTURED = "structured"  # JSON body, decoded
    RAW = "raw"  # body text as-is (Markdown, plain text)


class LoadError(Exception):
    """The transport answered, but not with a usable response."""


class ResourceLoader:
    """Loads resources through a `ResourceCache` and an async HTTP client.

    Usage:
        async with ResourceLoader(cache, make_http_client()) as loader:
            projects = await loader.load_json("data/projects.json")

    Args:
        cache: Cache consulted before, and filled after, every fetch.
        client: Anything with ``async get(url)`` returning an httpx-style
            response; normally an ``httpx.AsyncClient``.
        dedupe_inflight: Share a single fetch between concurrent misses for
            the same key and mode. Off by default, in which case each miss
            fetches on its own and the last write wins.
    """

    def __init__(
        self,
        cache: ResourceCache,
        client: httpx.AsyncClient,
        *,
        dedupe_inflight: bool = False,
    ) -> None:
        self.cache = cache
        self.client = client
        self.dedupe_inflight = dedupe_inflight
        self._inflight: dict[tuple[str, LoadMode], asyncio.Task] = {}

    async def __aenter__(self) -> "ResourceLoader":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def load(self, key: str, mode: LoadMode = LoadMode.STRUCTURED) -> Any | None:
        """Return the content at `key`, or None if it could not be loaded."""
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("[CACHE] Hit: %s", key)
            return cached

        if not self.dedupe_inflight:
            return await self._fetch_and_store(key, mode)

        slot = (key, mode)
        task = self._inflight.get(slot)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(key, mode))
            self._inflight[slot] = task
            task.add_done_callback(lambda _: self._inflight.pop(slot, None))
        # A cancelled waiter must not cancel the fetch the others share
        return await asyncio.shield(task)

    async def load_json(self, key: str) -> Any | None:
        return await self.load(key, LoadMode.STRUCTURED)

    async def load_markdown(self, key: str) -> str | None:
        return await self.load(key, LoadMode.RAW)

    async def _fetch_and_store(self, key: str, mode: LoadMode) -> Any | None:
        try:
            response = await self.client.get(key)
            if not response.is_success:
                raise LoadError(f"HTTP error! status: {response.status_code}")
            value = response.json() if mode is LoadMode.STRUCTURED else response.text
        except (httpx.HTTPError, httpx.InvalidURL, LoadError, ValueError, RecursionError) as exc:
            # ValueError covers malformed JSON and undecodable bodies, RecursionError too-deep nesting
            logger.error("[SYSTEM] Failed to load %s: %s", key, exc)
            return None

        self.cache.set(key, value)
        logger.info("[CACHE] Miss, stored: %s", key)
        return value

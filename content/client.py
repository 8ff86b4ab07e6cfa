"""httpx.AsyncClient factory for fetching site content."""
from __future__ import annotations

import httpx

import config


def make_http_client(base_url: str | None = None, timeout: float | None = None) -> httpx.AsyncClient:
    """Async client rooted at the content origin.

    Relative resource keys ("data/projects.json") resolve against
    `base_url`; absolute URLs are used as given.
    """
    return httpx.AsyncClient(
        base_url=base_url or config.CONTENT_BASE_URL,
        timeout=timeout if timeout is not None else config.HTTP_TIMEOUT_S,
        follow_redirects=True,
    )

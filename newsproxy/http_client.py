import asyncio

import httpx

from .config import Settings, get_settings

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Client rooted at the newsapi base URL.

    Connecting may take no longer than the upstream deadline; reads fall
    back to ``HTTP_TIMEOUT``.
    """
    limits = httpx.Limits(
        max_connections=settings.http_max_connections,
        max_keepalive_connections=settings.http_max_keepalive,
    )
    timeout = httpx.Timeout(
        settings.http_timeout,
        connect=min(settings.http_timeout, settings.upstream_timeout),
    )
    return httpx.AsyncClient(
        base_url=settings.newsapi_base_url,
        timeout=timeout,
        limits=limits,
        headers={
            "User-Agent": settings.http_user_agent,
            "Accept": "application/json",
        },
    )


async def get_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """Return the process-wide client shared by every upstream call.

    ``settings`` only matters for the call that creates the client.
    """
    global _client

    if _client is None:
        async with _client_lock:
            if _client is None:
                _client = build_http_client(settings or get_settings())
    return _client


async def shutdown_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from ..auth import lookup_api_key
from ..config import Settings, get_settings
from ..errors import HTTPError, MissingAuthKeyError, ParamsError
from ..models.envelope import SuccessEnvelope
from ..models.news import NewsResponse
from ..models.params import HeadlinesParams, ListParams, ParamSet
from ..newsclient import NewsClient


@dataclass(slots=True)
class NewsService:
    """Turns decoded params into a success envelope or an ``HTTPError``."""

    settings: Settings | None = None
    client: NewsClient | None = None
    key_lookup: Callable[[], str] = lookup_api_key

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()
        if self.client is None:
            self.client = NewsClient(settings=self.settings)

    async def list_news(self, params: ListParams, request_url: str) -> SuccessEnvelope:
        return await self._fetch(params, request_url)

    async def top_headlines(
        self, params: HeadlinesParams, request_url: str
    ) -> SuccessEnvelope:
        return await self._fetch(params, request_url)

    async def _fetch(self, params: ParamSet, request_url: str) -> SuccessEnvelope:
        endpoint = params.endpoint
        docs_url = endpoint.docs_url(self.settings.newsapi_docs_url)

        try:
            auth_key = self.key_lookup()
        except MissingAuthKeyError as exc:
            raise HTTPError(
                400,
                str(exc),
                request_url=request_url,
                docs_url=f"{self.settings.newsapi_docs_url.rstrip('/')}/authentication",
            ) from exc

        try:
            async with asyncio.timeout(self.settings.upstream_timeout):
                response = await self.client.get(auth_key, params)
        except HTTPError as exc:
            exc.request_url = exc.request_url or request_url
            exc.docs_url = exc.docs_url or docs_url
            raise
        except ParamsError as exc:
            raise HTTPError(
                400,
                f"encoding query parameters: {exc}",
                request_url=request_url,
                docs_url=docs_url,
            ) from exc
        except TimeoutError as exc:
            raise HTTPError(
                400,
                f"fetching {endpoint.name}: upstream request timed out",
                request_url=request_url,
                docs_url=docs_url,
            ) from exc
        except Exception as exc:
            raise HTTPError(
                400,
                f"fetching {endpoint.name}: {exc}",
                request_url=request_url,
                docs_url=docs_url,
            ) from exc

        return build_envelope(response, params.page, request_url)


def build_envelope(response: NewsResponse, page: int, request_url: str) -> SuccessEnvelope:
    return SuccessEnvelope(
        code=200,
        request_url=request_url,
        count=len(response.articles),
        page=page or 1,
        total_count=response.total_results,
        data=response.articles,
    )

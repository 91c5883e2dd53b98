import asyncio

import httpx
import pytest
import respx

from newsproxy.config import Settings
from newsproxy.errors import HTTPError, MissingAuthKeyError, UpstreamError
from newsproxy.models.news import NewsResponse
from newsproxy.models.params import HeadlinesParams, ListParams
from newsproxy.newsclient import NewsClient
from newsproxy.services.news import NewsService

from .fakes import FakeNewsClient


def _missing_key() -> str:
    raise MissingAuthKeyError("missing API key in the environment")


@pytest.mark.asyncio
async def test_list_news_builds_envelope(articles_payload) -> None:
    async with httpx.AsyncClient() as client:
        service = NewsService(
            settings=Settings(),
            client=NewsClient(settings=Settings(), client=client),
            key_lookup=lambda: "test-key",
        )
        with respx.mock(assert_all_called=True) as mock:
            mock.get("https://newsapi.org/v2/everything").respond(200, json=articles_payload)
            envelope = await service.list_news(
                ListParams(query="bitcoin"), "/api/list?query=bitcoin"
            )

    assert envelope.code == 200
    assert envelope.request_url == "/api/list?query=bitcoin"
    assert envelope.count == 2
    assert envelope.page == 1
    assert envelope.total_count == 42
    assert [article.title for article in envelope.data] == ["Bitcoin rallies", "Ethereum dips"]


@pytest.mark.asyncio
async def test_envelope_keeps_requested_page() -> None:
    service = NewsService(
        settings=Settings(),
        client=FakeNewsClient(response=NewsResponse(status="ok", total_results=7)),
        key_lookup=lambda: "test-key",
    )

    envelope = await service.top_headlines(HeadlinesParams(country="us", page=3), "/api/headlines")

    assert envelope.page == 3
    assert envelope.count == 0
    assert envelope.total_count == 7


@pytest.mark.asyncio
async def test_missing_key_points_to_authentication_docs() -> None:
    fake = FakeNewsClient()
    service = NewsService(settings=Settings(), client=fake, key_lookup=_missing_key)

    with pytest.raises(HTTPError) as info:
        await service.list_news(ListParams(query="a"), "/api/list?query=a")

    assert info.value.code == 400
    assert info.value.docs_url == "https://newsapi.org/docs/authentication"
    assert fake.calls == []


@pytest.mark.asyncio
async def test_param_errors_become_bad_requests() -> None:
    service = NewsService(settings=Settings(), client=FakeNewsClient(), key_lookup=lambda: "k")

    with pytest.raises(HTTPError) as info:
        await service.top_headlines(
            HeadlinesParams(sources="bbc-news", country="us"), "/api/headlines"
        )

    assert info.value.code == 400
    assert "mixing `sources` with the `country` param" in info.value.message
    assert info.value.docs_url == "https://newsapi.org/docs/endpoints/top-headlines"
    assert info.value.request_url == "/api/headlines"


@pytest.mark.asyncio
async def test_upstream_error_message_is_preserved() -> None:
    error = UpstreamError(status="error", code="apiKeyInvalid", message="key invalid")
    service = NewsService(
        settings=Settings(), client=FakeNewsClient(error=error), key_lookup=lambda: "k"
    )

    with pytest.raises(HTTPError) as info:
        await service.list_news(ListParams(query="a"), "/api/list?query=a")

    assert info.value.code == 400
    assert "key invalid" in info.value.message


class SlowClient(FakeNewsClient):
    async def get(self, auth_key, params):
        await asyncio.sleep(1)
        return await super().get(auth_key, params)


@pytest.mark.asyncio
async def test_upstream_deadline() -> None:
    settings = Settings(UPSTREAM_TIMEOUT=0.01)
    service = NewsService(settings=settings, client=SlowClient(), key_lookup=lambda: "k")

    with pytest.raises(HTTPError, match="timed out"):
        await service.list_news(ListParams(query="a"), "/api/list?query=a")

import asyncio
from datetime import timedelta

import pytest

from newsproxy.config import Settings
from newsproxy.errors import MissingAuthKeyError, UpstreamError
from newsproxy.models.news import NewsResponse
from newsproxy.models.params import Language
from newsproxy.services.ingest import (
    TOP_QUERIES,
    Ingestor,
    TopQuery,
    TopQueryKey,
    build_params,
)

from .fakes import FakeClock, FakeNewsClient, FakeStore


def _ingestor(
    client=None,
    store=None,
    top_queries=TOP_QUERIES,
    key_lookup=lambda: "test-key",
    settings=None,
):
    return Ingestor(
        client=client or FakeNewsClient(),
        store=store if store is not None else FakeStore(),
        clock=FakeClock(elapsed=timedelta(microseconds=123)),
        top_queries=top_queries,
        settings=settings or Settings(),
        key_lookup=key_lookup,
    )


def test_build_params_per_key() -> None:
    domains = build_params(TopQuery("domains", ("a.com", "b.com")))
    sources = build_params(TopQuery("sources", ("bloomberg", "financial-times")))
    query = build_params(TopQuery("query", ("bitcoin", "ethereum")))

    assert domains.domains == "a.com,b.com"
    assert sources.sources == "bloomberg,financial-times"
    assert query.query == '"bitcoin"+"ethereum"'
    assert {p.language for p in (domains, sources, query)} == {Language.EN}
    assert build_params(TopQuery("authors", ("someone",))) is None


@pytest.mark.asyncio
async def test_ingest_queries_every_curated_entry_in_order() -> None:
    client = FakeNewsClient()
    ingestor = _ingestor(client=client)

    log = await ingestor.ingest()

    assert log.queried == list(TOP_QUERIES)
    assert log.elapsed_time == timedelta(microseconds=123)
    assert [params.encode() for _, params in client.calls] == [
        "domains=techcrunch.com%2Cnytimes.com%2Cwsj.com&language=en",
        "language=en&sources=bloomberg%2Cfinancial-times%2Cthe-wall-street-journal",
        "language=en&q=%22bitcoin%22%2B%22ethereum%22%2B%22blockchain%22",
    ]


@pytest.mark.asyncio
async def test_ingest_skips_unknown_keys() -> None:
    known = TopQuery(TopQueryKey.DOMAINS.value, ("some", "valid", "terms"))
    client = FakeNewsClient()
    ingestor = _ingestor(
        client=client,
        top_queries=[TopQuery("unknown-domain", ("some", "valid", "terms")), known],
    )

    log = await ingestor.ingest()

    assert log.queried == [known]
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_ingest_persists_domain_entry() -> None:
    store = FakeStore()
    ingestor = _ingestor(store=store, top_queries=[TopQuery("domains", ("a.com", "b.com"))])

    await ingestor.ingest()

    (news_table, _, news_rows), (source_table, _, source_rows) = store.calls
    assert (news_table, source_table) == ("news", "source")
    assert len(news_rows) == len(source_rows) == 2
    assert [row[0] for row in news_rows] == [row[0] for row in source_rows]
    assert [row[1:] for row in source_rows] == [
        ("bloomberg", "Bloomberg"),
        ("financial-times", "Financial Times"),
    ]


@pytest.mark.asyncio
async def test_empty_results_do_not_touch_the_store() -> None:
    store = FakeStore()
    client = FakeNewsClient(response=NewsResponse(status="ok", total_results=3))
    ingestor = _ingestor(client=client, store=store)

    response = await ingestor.fetch_and_persist(build_params(TOP_QUERIES[0]))

    assert response.status == "ok"
    assert response.total_results == 0
    assert store.calls == []


@pytest.mark.asyncio
async def test_first_failure_aborts_the_run() -> None:
    error = UpstreamError(status="error", code="rateLimited", message="too many requests")
    client = FakeNewsClient(error=error)
    ingestor = _ingestor(client=client)

    with pytest.raises(UpstreamError, match="too many requests"):
        await ingestor.ingest()

    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_persistence_failure_aborts_the_run() -> None:
    client = FakeNewsClient()
    ingestor = _ingestor(client=client, store=FakeStore(fail_on="source"))

    with pytest.raises(RuntimeError, match="cannot insert into source"):
        await ingestor.ingest()

    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_missing_key_fails_fast() -> None:
    def missing() -> str:
        raise MissingAuthKeyError("missing API key in the environment")

    client = FakeNewsClient()
    ingestor = _ingestor(client=client, key_lookup=missing)

    with pytest.raises(MissingAuthKeyError):
        await ingestor.ingest()

    assert client.calls == []


class SlowNewsClient(FakeNewsClient):
    async def get(self, auth_key, params):
        await asyncio.sleep(1)
        return await super().get(auth_key, params)


class SlowStore(FakeStore):
    async def create(self, table, columns, rows):
        await asyncio.sleep(0.05)
        await super().create(table, columns, rows)


@pytest.mark.asyncio
async def test_upstream_deadline_aborts_before_persisting() -> None:
    store = FakeStore()
    ingestor = _ingestor(
        client=SlowNewsClient(),
        store=store,
        settings=Settings(UPSTREAM_TIMEOUT=0.01),
    )

    with pytest.raises(TimeoutError):
        await ingestor.ingest()

    assert store.calls == []


@pytest.mark.asyncio
async def test_upstream_deadline_does_not_cover_persistence() -> None:
    store = SlowStore()
    ingestor = _ingestor(
        store=store,
        top_queries=[TopQuery("domains", ("a.com", "b.com"))],
        settings=Settings(UPSTREAM_TIMEOUT=0.01),
    )

    log = await ingestor.ingest()

    assert len(log.queried) == 1
    assert [call[0] for call in store.calls] == ["news", "source"]

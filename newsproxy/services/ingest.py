from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Protocol

from .. import persistence
from ..auth import lookup_api_key
from ..clock import Clock, SystemClock
from ..config import Settings, get_settings
from ..models.news import NewsResponse
from ..models.params import Language, ListParams, ParamSet
from ..persistence import RowIdSequence
from ..store import Store

logger = logging.getLogger(__name__)


class TopQueryKey(str, Enum):
    DOMAINS = "domains"
    SOURCES = "sources"
    QUERY = "query"


@dataclass(frozen=True, slots=True)
class TopQuery:
    key: str
    values: tuple[str, ...]


@dataclass(slots=True)
class IngestionLog:
    queried: list[TopQuery] = field(default_factory=list)
    elapsed_time: timedelta = timedelta(0)


# TODO: load the curated queries from the database instead of this table.
TOP_QUERIES: tuple[TopQuery, ...] = (
    TopQuery(TopQueryKey.DOMAINS.value, ("techcrunch.com", "nytimes.com", "wsj.com")),
    TopQuery(
        TopQueryKey.SOURCES.value,
        ("bloomberg", "financial-times", "the-wall-street-journal"),
    ),
    TopQuery(TopQueryKey.QUERY.value, ("bitcoin", "ethereum", "blockchain")),
)


class NewsFetcher(Protocol):
    async def get(self, auth_key: str, params: ParamSet) -> NewsResponse: ...


def build_params(entry: TopQuery) -> ListParams | None:
    """Map a curated entry to ``everything`` params, None for unknown keys."""
    try:
        key = TopQueryKey(entry.key)
    except ValueError:
        return None

    if key is TopQueryKey.DOMAINS:
        return ListParams(language=Language.EN, domains=",".join(entry.values))
    if key is TopQueryKey.SOURCES:
        return ListParams(language=Language.EN, sources=",".join(entry.values))
    # Quoted terms force an exact phrase match upstream.
    return ListParams(
        language=Language.EN,
        query="+".join(f'"{term}"' for term in entry.values),
    )


@dataclass(slots=True)
class Ingestor:
    """Fetches the curated top queries from newsapi and stores the articles."""

    client: NewsFetcher
    store: Store
    clock: Clock = field(default_factory=SystemClock)
    top_queries: Sequence[TopQuery] = TOP_QUERIES
    settings: Settings | None = None
    key_lookup: Callable[[], str] = lookup_api_key
    ids: RowIdSequence | None = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()
        if self.ids is None:
            self.ids = RowIdSequence(self.clock)

    async def ingest(self) -> IngestionLog:
        started = self.clock.now()

        queried: list[TopQuery] = []
        for entry in self.top_queries:
            params = build_params(entry)
            if params is None:
                logger.warning("skipping unknown top query key: %s", entry.key)
                continue
            await self.fetch_and_persist(params)
            queried.append(entry)

        return IngestionLog(queried=queried, elapsed_time=self.clock.since(started))

    async def fetch_and_persist(self, params: ListParams) -> NewsResponse:
        auth_key = self.key_lookup()

        async with asyncio.timeout(self.settings.upstream_timeout):
            response = await self.client.get(auth_key, params)

        if not response.articles:
            return NewsResponse(status=response.status, total_results=0)

        await persistence.create(self.store, self.ids, response.articles)
        return response

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from .clock import Clock
from .models.news import Article, Source
from .store import Store

NEWS_TABLE = "news"
SOURCE_TABLE = "source"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


# Field order is the column order of the COPY; reordering breaks inserts.
class NewsRow(NamedTuple):
    app_id: int
    author: str | None
    title: str | None
    description: str | None
    url: str | None
    image_url: str | None
    published_at: datetime | None


class SourceRow(NamedTuple):
    news_id: int
    id: str | None
    name: str | None


class RowIdSequence:
    """Strictly increasing ids drawn from the clock's nanoseconds since epoch.

    Two calls within the same clock tick still get distinct ids.
    """

    def __init__(self, clock: Clock):
        self.clock = clock
        self._last = 0

    def next(self) -> int:
        elapsed = self.clock.now() - _EPOCH
        candidate = elapsed // _MICROSECOND * 1000
        self._last = max(candidate, self._last + 1)
        return self._last


def news_row(app_id: int, article: Article) -> NewsRow:
    return NewsRow(
        app_id=app_id,
        author=article.author,
        title=article.title,
        description=article.description,
        url=article.url,
        image_url=article.image_url,
        published_at=article.published_at,
    )


def source_row(news_id: int, source: Source) -> SourceRow:
    return SourceRow(news_id=news_id, id=source.id, name=source.name)


async def create(store: Store, ids: RowIdSequence, articles: Sequence[Article]) -> None:
    """Insert ``articles`` into ``news`` and their sources into ``source``.

    A source row carries the ``app_id`` of its article as ``news_id``.
    """
    news_rows: list[NewsRow] = []
    source_rows: list[SourceRow] = []
    for article in articles:
        row_id = ids.next()
        news_rows.append(news_row(row_id, article))
        if article.source is not None:
            source_rows.append(source_row(row_id, article.source))

    await store.create(NEWS_TABLE, NewsRow._fields, news_rows)
    if source_rows:
        await store.create(SOURCE_TABLE, SourceRow._fields, source_rows)

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Source(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None, description="newsapi source identifier")
    name: str | None = Field(default=None, description="Publisher name")


class Article(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: Source | None = None
    author: str | None = None
    title: str | None = None
    description: str | None = None
    url: str | None = Field(default=None, description="Canonical article URL")
    image_url: str | None = Field(default=None, alias="urlToImage")
    published_at: datetime | None = Field(
        default=None,
        alias="publishedAt",
        description="Publication timestamp in UTC",
    )

    @field_validator("published_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class NewsResponse(BaseModel):
    """Successful newsapi payload."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = ""
    total_results: int = Field(0, ge=0, alias="totalResults")
    articles: list[Article] = Field(default_factory=list)


class UpstreamErrorBody(BaseModel):
    status: str = ""
    code: str = ""
    message: str = ""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, TypeVar
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import (
    DecodeParamsError,
    InvalidPageSizeError,
    MixedExclusiveParamsError,
    NoRequiredParamsError,
)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A newsapi endpoint relative to the API and documentation base URLs."""

    name: str
    path: str
    docs_path: str

    def url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{self.path}"

    def docs_url(self, docs_base_url: str) -> str:
        return f"{docs_base_url.rstrip('/')}{self.docs_path}"


EVERYTHING = Endpoint("news list", "/everything", "/endpoints/everything")
TOP_HEADLINES = Endpoint("top headlines", "/top-headlines", "/endpoints/top-headlines")


class SortBy(str, Enum):
    RELEVANCY = "relevancy"
    POPULARITY = "popularity"
    PUBLISHED_AT = "publishedAt"


class Language(str, Enum):
    """ISO-639-1 codes newsapi can filter on."""

    AR = "ar"
    DE = "de"
    EN = "en"
    ES = "es"
    FR = "fr"
    HE = "he"
    IT = "it"
    NL = "nl"
    NO = "no"
    PT = "pt"
    RU = "ru"
    SE = "se"
    UD = "ud"
    ZH = "zh"


class Category(str, Enum):
    BUSINESS = "business"
    ENTERTAINMENT = "entertainment"
    GENERAL = "general"
    HEALTH = "health"
    SCIENCE = "science"
    SPORTS = "sports"
    TECHNOLOGY = "technology"


def format_rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ParamSet(BaseModel):
    """Query parameters for one newsapi endpoint.

    Subclasses list their non-paging parameters in ``_pairs``; ``encode``
    checks that at least one is present, applies paging and renders the
    sorted query string sent upstream.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    endpoint: ClassVar[Endpoint]
    required_message: ClassVar[str]

    page_size: int = Field(0, ge=0, alias="pageSize", description="0 leaves the upstream default (20)")
    page: int = Field(0, ge=0)

    @abstractmethod
    def _pairs(self) -> list[tuple[str, str]]: ...

    def encode(self) -> str:
        pairs = self._pairs()
        if not pairs:
            raise NoRequiredParamsError(self.required_message)

        if self.page_size > MAX_PAGE_SIZE:
            raise InvalidPageSizeError(
                f"the maximum page size is {MAX_PAGE_SIZE}, you requested {self.page_size}"
            )
        if self.page:
            pairs.append(("page", str(self.page)))
        if self.page_size:
            pairs.append(("pageSize", str(self.page_size)))

        return urlencode(sorted(pairs))


class ListParams(ParamSet):
    """Parameters for the ``everything`` endpoint."""

    endpoint: ClassVar[Endpoint] = EVERYTHING
    required_message: ClassVar[str] = "required parameters are missing: query, sources, domains"

    query: str = ""
    sources: str = Field("", description="Comma-separated source ids")
    domains: str = Field("", description="Comma-separated domains, e.g. bbc.co.uk")
    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None
    language: Language | None = None
    sort_by: SortBy | None = Field(default=None, alias="sortBy")

    def _pairs(self) -> list[tuple[str, str]]:
        pairs: list[tuple[str, str]] = []
        if self.query:
            pairs.append(("q", self.query))
        if self.sources:
            pairs.append(("sources", self.sources))
        if self.domains:
            pairs.append(("domains", self.domains))
        if not pairs:
            # from, to, language and sortBy only narrow a search.
            return pairs

        if self.from_ is not None:
            pairs.append(("from", format_rfc3339(self.from_)))
        if self.to is not None:
            pairs.append(("to", format_rfc3339(self.to)))
        if self.language is not None:
            pairs.append(("language", self.language.value))
        if self.sort_by is not None:
            pairs.append(("sortBy", self.sort_by.value))
        return pairs


class HeadlinesParams(ParamSet):
    """Parameters for the ``top-headlines`` endpoint."""

    endpoint: ClassVar[Endpoint] = TOP_HEADLINES
    required_message: ClassVar[str] = (
        "required parameters are missing: sources, query, country, category"
    )

    country: str = ""
    category: Category | None = None
    sources: str = ""
    query: str = ""

    @field_validator("country")
    @classmethod
    def _country_code(cls, value: str) -> str:
        value = value.lower()
        if value and (len(value) != 2 or not value.isalpha()):
            raise ValueError("country must be a 2-letter ISO 3166-1 code")
        return value

    def _pairs(self) -> list[tuple[str, str]]:
        pairs: list[tuple[str, str]] = []
        if self.query:
            pairs.append(("q", self.query))
        if self.sources:
            pairs.append(("sources", self.sources))
        if self.country:
            if self.sources:
                raise MixedExclusiveParamsError("mixing `sources` with the `country` param")
            pairs.append(("country", self.country))
        if self.category is not None:
            if self.sources:
                raise MixedExclusiveParamsError("mixing `sources` with the `category` param")
            pairs.append(("category", self.category.value))
        return pairs


P = TypeVar("P", bound=ParamSet)


def decode_params(model: type[P], query: Iterable[tuple[str, str]]) -> P:
    """Build ``model`` from inbound query string pairs.

    Keys are matched against the public parameter names only, blank values
    are treated as unset and the last occurrence of a repeated key wins.
    """
    known = {field.alias or name for name, field in model.model_fields.items()}
    data: dict[str, str] = {}
    unknown: dict[str, list[str]] = {}
    for key, value in query:
        if key not in known:
            unknown[key] = ["unknown parameter"]
            continue
        if value == "":
            continue
        data[key] = value

    if unknown:
        raise DecodeParamsError("decoding query parameters", unknown)

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        field_errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "params"
            field_errors.setdefault(field, []).append(error["msg"])
        raise DecodeParamsError("decoding query parameters", field_errors) from exc

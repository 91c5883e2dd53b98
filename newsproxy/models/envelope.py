from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .news import Article


class SuccessEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: int = Field(200, description="HTTP status code of the response")
    request_url: str = Field(alias="requestURL", description="Inbound path and query")
    count: int = Field(ge=0, description="Number of articles in data")
    page: int = Field(ge=1, description="Current result page")
    total_count: int = Field(
        ge=0, alias="totalCount", description="Total results available upstream"
    )
    data: list[Article] = Field(default_factory=list)


class FieldError(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    field: str = Field(alias="Field")
    errors: list[str] = Field(default_factory=list, alias="Errors")


class FieldErrors(BaseModel):
    message: str
    errors: list[FieldError] | None = None


class ErrorBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    message: str
    request_url: str | None = Field(default=None, alias="requestUrl")
    docs_url: str | None = Field(default=None, alias="docsUrl")
    errors: list[FieldErrors] | None = None

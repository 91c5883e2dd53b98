from __future__ import annotations

from typing import Any

from .models.envelope import ErrorBody, FieldErrors


class NewsProxyError(Exception):
    """Base class for every error raised by newsproxy."""


class MissingAuthKeyError(NewsProxyError):
    pass


class ParamsError(NewsProxyError):
    """Request parameters cannot be sent upstream."""


class NoRequiredParamsError(ParamsError):
    pass


class MixedExclusiveParamsError(ParamsError):
    pass


class InvalidPageSizeError(ParamsError):
    pass


class DecodeParamsError(ParamsError):
    def __init__(self, message: str, field_errors: dict[str, list[str]] | None = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class UpstreamError(NewsProxyError):
    """Structured error body returned by newsapi."""

    def __init__(self, status: str, code: str, message: str):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message


class UpstreamDecodeError(NewsProxyError):
    pass


class PersistenceError(NewsProxyError):
    pass


class HTTPError(NewsProxyError):
    """Error rendered to clients as a JSON body with its own status code."""

    def __init__(
        self,
        code: int,
        message: str,
        request_url: str | None = None,
        docs_url: str | None = None,
        field_errors: list[FieldErrors] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.request_url = request_url
        self.docs_url = docs_url
        self.field_errors = field_errors or []

    def __str__(self) -> str:
        if not self.field_errors:
            return self.message
        return f'{self.message}. See "errors" field for more info.'

    def body(self) -> ErrorBody:
        return ErrorBody(
            status_code=self.code,
            message=self.message,
            request_url=self.request_url or None,
            docs_url=self.docs_url or None,
            errors=self.field_errors or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.body().model_dump(by_alias=True, exclude_none=True)

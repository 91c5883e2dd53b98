from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from .config import Settings, get_settings
from .errors import HTTPError, UpstreamDecodeError, UpstreamError
from .http_client import get_http_client
from .models.news import NewsResponse, UpstreamErrorBody
from .models.params import ParamSet

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Api-Key"


@dataclass(slots=True)
class NewsClient:
    """Stateless client for the newsapi.org v2 endpoints.

    The endpoint is chosen by the type of the params passed to ``get``.
    Deadlines and cancellation come from the calling task.
    """

    settings: Settings | None = None
    client: httpx.AsyncClient | None = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()

    async def get(self, auth_key: str, params: ParamSet) -> NewsResponse:
        query = params.encode()
        endpoint = params.endpoint
        url = endpoint.url(self.settings.newsapi_base_url)
        client = self.client or await get_http_client(self.settings)

        try:
            response = await client.get(
                f"{url}?{query}", headers={API_KEY_HEADER: auth_key}
            )
        except httpx.HTTPError as exc:
            logger.warning("newsapi request to %s failed: %s", url, exc)
            raise HTTPError(
                400,
                f"dispatching request: {exc}",
                docs_url=endpoint.docs_url(self.settings.newsapi_docs_url),
            ) from exc

        return decode_response(response)


def decode_response(response: httpx.Response) -> NewsResponse:
    """Return the articles payload or raise the upstream's error body."""
    if response.is_success:
        try:
            return NewsResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise UpstreamDecodeError(f"error decoding response: {exc}") from exc

    try:
        body = UpstreamErrorBody.model_validate_json(response.content)
    except ValidationError as exc:
        raise UpstreamDecodeError(
            f"error decoding response (status {response.status_code}): {exc}"
        ) from exc
    message = body.message or f"upstream returned status {response.status_code}"
    raise UpstreamError(status=body.status, code=body.code, message=message)

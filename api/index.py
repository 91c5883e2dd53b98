from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import ORJSONResponse
from mangum import Mangum
from starlette.exceptions import HTTPException as StarletteHTTPException

from newsproxy.config import get_settings
from newsproxy.errors import DecodeParamsError, HTTPError
from newsproxy.http_client import shutdown_http_client
from newsproxy.log import configure_logging
from newsproxy.models.envelope import FieldError, FieldErrors, SuccessEnvelope
from newsproxy.models.params import HeadlinesParams, ListParams, ParamSet, decode_params
from newsproxy.newsclient import NewsClient
from newsproxy.scheduler import IngestScheduler
from newsproxy.services import Ingestor, NewsService
from newsproxy.store import PostgresStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="newsproxy",
    version="0.1.0",
    description="Validating proxy in front of newsapi.org with scheduled article ingestion.",
    default_response_class=ORJSONResponse,
)


def request_url(request: Request) -> str:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def _decode(model: type[ParamSet], request: Request) -> ParamSet:
    # Routes are GET only: the query string is the whole inbound form.
    try:
        return decode_params(model, request.query_params.multi_items())
    except DecodeParamsError as exc:
        raise HTTPError(
            400,
            str(exc),
            request_url=request_url(request),
            docs_url=model.endpoint.docs_url(get_settings().newsapi_docs_url),
            field_errors=[
                FieldErrors(
                    message=str(exc),
                    errors=[
                        FieldError(field=name, errors=messages)
                        for name, messages in exc.field_errors.items()
                    ],
                )
            ],
        ) from exc


def get_list_params(request: Request) -> ListParams:
    return _decode(ListParams, request)


def get_headlines_params(request: Request) -> HeadlinesParams:
    return _decode(HeadlinesParams, request)


def get_news_service() -> NewsService:
    return NewsService()


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/list", tags=["news"])
async def list_news(
    request: Request,
    params: ListParams = Depends(get_list_params),
    service: NewsService = Depends(get_news_service),
) -> SuccessEnvelope:
    """Search newsapi's ``everything`` endpoint.

    Only GET is served, so parameters are read from the query string alone;
    a request body is never decoded.
    """
    return await service.list_news(params, request_url(request))


@app.get("/api/headlines", tags=["news"])
async def top_headlines(
    request: Request,
    params: HeadlinesParams = Depends(get_headlines_params),
    service: NewsService = Depends(get_news_service),
) -> SuccessEnvelope:
    """Top headlines, parameters read from the query string alone."""
    return await service.top_headlines(params, request_url(request))


@app.exception_handler(HTTPError)
async def http_error_handler(request: Request, exc: HTTPError) -> ORJSONResponse:
    if not exc.request_url:
        exc.request_url = request_url(request)
    return ORJSONResponse(exc.to_dict(), status_code=exc.code)


@app.exception_handler(StarletteHTTPException)
async def starlette_error_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    message = "page not found" if exc.status_code == 404 else str(exc.detail)
    error = HTTPError(exc.status_code, message, request_url=request_url(request))
    return ORJSONResponse(
        error.to_dict(), status_code=exc.status_code, headers=exc.headers
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> ORJSONResponse:
    logger.error("unhandled error on %s", request.url.path, exc_info=exc)
    error = HTTPError(500, str(exc) or "internal server error", request_url=request_url(request))
    return ORJSONResponse(error.to_dict(), status_code=500)


@app.on_event("startup")
async def on_startup() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    app.state.store = None
    app.state.scheduler = None
    if not settings.db_host:
        logger.info("DB_HOST not set, ingestion disabled")
        return

    store = await PostgresStore.connect(settings)
    app.state.store = store
    if settings.ingest_interval > 0:
        ingestor = Ingestor(
            client=NewsClient(settings=settings), store=store, settings=settings
        )
        scheduler = IngestScheduler(ingestor, settings.ingest_interval)
        scheduler.start()
        app.state.scheduler = scheduler


@app.on_event("shutdown")
async def on_shutdown() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        await scheduler.stop()
    store = getattr(app.state, "store", None)
    if store is not None:
        await store.close()
    await shutdown_http_client()


handler = Mangum(app)

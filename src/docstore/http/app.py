from __future__ import annotations

import contextlib
import functools
import json
import logging
import typing as t
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from docstore.cache import ExpiringCache
from docstore.core import DocumentCache, DocumentService, SessionRegistry
from docstore.core.errors import DocstoreError, InvalidInputError
from docstore.core.models import DocumentMeta, Identity
from docstore.storage import InMemoryStorage, RedisStorage, StorageAdapter
from docstore.utils.config import AppConfig
from docstore.utils.resilience import CircuitBreaker, CircuitBreakerConfig

_logger = logging.getLogger(__name__)

TOKEN_HEADER = "token"

Handler = t.Callable[[Request], t.Awaitable[Response]]
AuthenticatedHandler = t.Callable[[Request, Identity], t.Awaitable[Response]]


def authenticated(handler: AuthenticatedHandler) -> Handler:
    """Resolve the session token once and hand the identity to ``handler`` as an argument."""

    @functools.wraps(handler)
    async def endpoint(request: Request) -> Response:
        service: DocumentService = request.app.state.service
        identity = service.authenticate(request.headers.get(TOKEN_HEADER))
        return await handler(request, identity)

    return endpoint


async def _json_body(request: Request) -> t.Dict[str, t.Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidInputError() from exc
    if not isinstance(body, dict):
        raise InvalidInputError()
    return body


async def register(request: Request) -> Response:
    service: DocumentService = request.app.state.service
    body = await _json_body(request)
    login = await service.register(body.get("token"), body.get("login"), body.get("pswd"))
    return JSONResponse({"response": {"login": login}})


async def authenticate(request: Request) -> Response:
    service: DocumentService = request.app.state.service
    body = await _json_body(request)
    token = await service.login(body.get("login"), body.get("pswd"))
    return JSONResponse({"response": {"token": token}})


async def logout(request: Request) -> Response:
    service: DocumentService = request.app.state.service
    token = request.path_params["token"]
    return JSONResponse({"response": {token: service.logout(token)}})


@authenticated
async def list_documents(request: Request, identity: Identity) -> Response:
    service: DocumentService = request.app.state.service
    query = request.query_params
    listing = await service.list_documents(
        identity,
        login=query.get("login") or None,
        filter_key=query.get("key") or None,
        filter_value=query.get("value") or None,
        limit=query.get("limit"),
    )
    return JSONResponse(listing.to_dict())


@authenticated
async def upload_document(request: Request, identity: Identity) -> Response:
    service: DocumentService = request.app.state.service
    max_bytes: int = request.app.state.max_upload_bytes
    async with request.form() as form:
        raw_meta = form.get("meta")
        if not raw_meta or not isinstance(raw_meta, str):
            raise InvalidInputError("Missing metadata")
        try:
            meta = DocumentMeta.from_dict(json.loads(raw_meta))
        except ValueError as exc:
            raise InvalidInputError("Invalid metadata") from exc

        if meta.is_file:
            upload = form.get("file")
            if not isinstance(upload, UploadFile):
                raise InvalidInputError("File not found")
            payload: t.Any = await upload.read(max_bytes + 1)
            if len(payload) > max_bytes:
                raise InvalidInputError("File too large")
        else:
            raw_json = form.get("json")
            if not raw_json or not isinstance(raw_json, str):
                raise InvalidInputError("Missing JSON data")
            try:
                payload = json.loads(raw_json)
            except ValueError as exc:
                raise InvalidInputError("Invalid JSON data") from exc

    document = await service.upload(identity, meta, payload)
    data = {"id": document.id, "json": None if document.is_file else document.payload, "file": document.name}
    return JSONResponse({"data": data})


@authenticated
async def get_document(request: Request, identity: Identity) -> Response:
    service: DocumentService = request.app.state.service
    served = await service.get_document(identity, request.path_params["id"])
    return Response(served.body, media_type=served.media_type)


@authenticated
async def delete_document(request: Request, identity: Identity) -> Response:
    service: DocumentService = request.app.state.service
    document_id = request.path_params["id"]
    deleted = await service.delete_document(identity, document_id)
    return JSONResponse({"response": {document_id: deleted}})


async def handle_docstore_error(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, DocstoreError)
    if exc.status >= 500:
        _logger.error("Request failed method=%s path=%s error=%s", request.method, request.url.path, exc.code)
    return JSONResponse(exc.to_dict(), status_code=exc.status)


async def handle_http_exception(request: Request, exc: Exception) -> Response:
    """Render framework errors (bad multipart bodies, unknown routes) in the same envelope."""
    assert isinstance(exc, HTTPException)
    body = {"error": {"code": exc.status_code, "type": "HTTP", "text": exc.detail}}
    return JSONResponse(body, status_code=exc.status_code, headers=exc.headers)


def create_app(
    service: DocumentService,
    *,
    cache: t.Optional[ExpiringCache] = None,
    max_upload_bytes: int = 10 << 20,
    debug: bool = False,
) -> Starlette:
    """Build the HTTP application around an already-wired service.

    When ``cache`` is given its sweeper is started on startup and the cache is
    closed on shutdown together with the service's storage.
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        if cache is not None:
            cache.start()
        _logger.info("Application started")
        try:
            yield
        finally:
            _logger.info("Application shutting down...")
            if cache is not None:
                cache.close()
            await service.storage.close()

    routes = [
        Route("/api/register", register, methods=["POST"]),
        Route("/api/auth", authenticate, methods=["POST"]),
        Route("/api/auth/{token}", logout, methods=["DELETE"]),
        Route("/api/docs", list_documents, methods=["GET"]),
        Route("/api/docs", upload_document, methods=["POST"]),
        Route("/api/docs/{id}", get_document, methods=["GET"]),
        Route("/api/docs/{id}", delete_document, methods=["DELETE"]),
    ]
    app = Starlette(
        debug=debug,
        routes=routes,
        exception_handlers={DocstoreError: handle_docstore_error, HTTPException: handle_http_exception},
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.max_upload_bytes = max_upload_bytes
    return app


def build_storage(config: AppConfig) -> StorageAdapter:
    if config.storage.type == "redis":
        breaker = CircuitBreaker(
            CircuitBreakerConfig(
                failure_threshold=config.resilience.failure_threshold,
                reset_timeout_seconds=config.resilience.reset_timeout_seconds,
            ),
            name="redis",
        )
        return RedisStorage(
            url=config.storage.connection_string or "redis://localhost:6379/0",
            prefix=config.storage.prefix,
            retry_attempts=config.resilience.retry_max_attempts,
            retry_backoff_ms=config.resilience.retry_backoff_ms,
            circuit_breaker=breaker,
            use_circuit_breaker=config.resilience.circuit_breaker_enabled,
        )
    return InMemoryStorage()


def create_app_from_config(config: AppConfig, *, debug: bool = False) -> Starlette:
    config.validate()
    cache = ExpiringCache(
        default_ttl_seconds=config.cache.default_ttl_seconds,
        sweep_interval_seconds=config.cache.sweep_interval_seconds,
        sweep_batch_size=config.cache.sweep_batch_size,
    )
    sessions = SessionRegistry(cache, ttl_seconds=config.session.ttl_seconds, token_bytes=config.session.token_bytes)
    documents = DocumentCache(cache)
    service = DocumentService(
        build_storage(config),
        sessions,
        documents,
        admin_token=t.cast(str, config.server.admin_token),
    )
    return create_app(service, cache=cache, max_upload_bytes=config.server.max_upload_bytes, debug=debug)

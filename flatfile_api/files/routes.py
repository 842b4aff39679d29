"""aiohttp wiring for the file handlers.

Endpoints (``{prefix}`` defaults to ``/api``)::

    GET    {prefix}/hello           list every stored file
    POST   {prefix}/hello           create  {"filename": ..., "content": ...}
    GET    {prefix}/hello/{name}    read
    PUT    {prefix}/hello/{name}    update  {"content": ...}
    DELETE {prefix}/hello/{name}    delete

The same five routes exist under ``{prefix}/csv`` and ``{prefix}/json``.
``GET {prefix}/health`` reports storage health.

Every response is a JSON object with a ``mensaje`` field.
"""

from __future__ import annotations

import functools
import json
import time
from typing import Any, Awaitable, Callable

from aiohttp import web

from flatfile_api.files.errors import FileApiError
from flatfile_api.files.handlers import CsvFileHandler, FileHandler, JsonFileHandler
from flatfile_api.services.filesystem.interface import FileSystemInterface
from flatfile_api.services.logger.interface import LoggingInterface
from flatfile_api.services.metrics.interface import MetricsInterface

SERVICE = "flatfile_api"

# URL segment -> handler class
FAMILIES: dict[str, type[FileHandler]] = {
    "hello": FileHandler,
    "csv": CsvFileHandler,
    "json": JsonFileHandler,
}

_FORM_TYPES = {"application/x-www-form-urlencoded", "multipart/form-data"}

_dumps = functools.partial(json.dumps, ensure_ascii=False)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _reply(body: dict[str, Any], status: int = 200) -> web.Response:
    return web.json_response(body, status=status, dumps=_dumps)


def normalize_prefix(prefix: str) -> str:
    """``api/`` -> ``/api``; empty stays empty (routes at the root)."""
    prefix = prefix.strip().strip("/")
    return f"/{prefix}" if prefix else ""


async def read_fields(request: web.Request) -> dict[str, Any]:
    """Extract request fields from a JSON object or a form body.

    A body that is not a JSON object, or that cannot be decoded, yields no
    fields; the handler then reports what is missing.
    """
    if request.content_type in _FORM_TYPES:
        return dict(await request.post())
    if not request.body_exists:
        return {}
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def create_error_middleware(log: LoggingInterface, metrics: MetricsInterface) -> Any:
    """Render FileApiError as ``{mensaje, ...}`` and record request metrics."""

    @web.middleware
    async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        started = time.perf_counter()
        route_name = request.match_info.route.name or ""
        family = route_name.split(".", 1)[0] or "none"
        status = 500
        try:
            response = await handler(request)
            status = response.status
            return response
        except FileApiError as exc:
            status = exc.status
            level = log.error if status >= 500 else log.warn
            level(
                "Request failed",
                family=family,
                method=request.method,
                path=request.path,
                status=status,
                mensaje=exc.mensaje,
            )
            return _reply(exc.to_body(), status=status)
        except web.HTTPException as exc:
            status = exc.status
            raise
        finally:
            tags = {
                "service": SERVICE,
                "family": family,
                "method": request.method,
                "status": str(status),
            }
            metrics.counter("http_requests_total", tags=tags)
            metrics.histogram(
                "http_request_duration_seconds",
                time.perf_counter() - started,
                tags={"service": SERVICE, "family": family},
            )

    return error_middleware


def add_family_routes(app: web.Application, base: str, segment: str, handler: FileHandler) -> None:
    """Register the five CRUD routes for one resource family."""
    root = f"{base}/{segment}"

    async def list_files(request: web.Request) -> web.Response:
        return _reply(handler.list())

    async def create_file(request: web.Request) -> web.Response:
        return _reply(handler.create(await read_fields(request)))

    async def read_file(request: web.Request) -> web.Response:
        return _reply(handler.read(request.match_info["name"]))

    async def update_file(request: web.Request) -> web.Response:
        return _reply(handler.update(request.match_info["name"], await read_fields(request)))

    async def delete_file(request: web.Request) -> web.Response:
        return _reply(handler.delete(request.match_info["name"]))

    app.router.add_get(root, list_files, name=f"{segment}.list")
    app.router.add_post(root, create_file, name=f"{segment}.create")
    app.router.add_get(root + "/{name}", read_file, name=f"{segment}.read")
    app.router.add_put(root + "/{name}", update_file, name=f"{segment}.update")
    app.router.add_delete(root + "/{name}", delete_file, name=f"{segment}.delete")


def create_app(
    fs: FileSystemInterface,
    log: LoggingInterface,
    metrics: MetricsInterface,
    prefix: str = "/api",
) -> web.Application:
    """Build the application serving all three families over *fs*."""
    base = normalize_prefix(prefix)
    app = web.Application(middlewares=[create_error_middleware(log, metrics)])

    for segment, handler_cls in FAMILIES.items():
        add_family_routes(app, base, segment, handler_cls(fs, log))

    async def health(request: web.Request) -> web.Response:
        if fs.health_check():
            return web.json_response({"status": "ok"})
        return web.json_response({"status": "unavailable"}, status=503)

    app.router.add_get(f"{base}/health", health, name="health")
    return app

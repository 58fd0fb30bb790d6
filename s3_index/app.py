"""HTTP surface: FastAPI application serving listings and redirects."""
import logging
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote

import anyio.from_thread
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from .controller import IndexController
from .formatting import directory_url, listing_rows, listing_to_dict, load_package_info
from .listing import (
    DeadlineExceededError,
    ListError,
    ListingCancelledError,
    PrefixNotFoundError,
    StoreUnavailableError,
    TooManyPagesError,
)
from .models import DirectoryListing
from .resolver import PathError
from .services import ObjectStore
from .settings import SigningConfig

LOGGER = logging.getLogger(__name__)
ACCESS_LOGGER = logging.getLogger("s3_index.access")

TEMPLATES_DIR = Path(__file__).parent / "templates"

# nginx's non-standard code for a client that went away mid-request
CLIENT_CLOSED_REQUEST = 499

_ERROR_STATUS: list[tuple[type[Exception], int, str]] = [
    (PathError, 400, "BAD_REQUEST"),
    (PrefixNotFoundError, 404, "NOT_FOUND"),
    (TooManyPagesError, 502, "BAD_GATEWAY"),
    (StoreUnavailableError, 502, "BAD_GATEWAY"),
    (DeadlineExceededError, 504, "GATEWAY_TIMEOUT"),
    (ListingCancelledError, CLIENT_CLOSED_REQUEST, "CLIENT_CLOSED_REQUEST"),
]


def error_status(exc: Exception) -> tuple[int, str]:
    for error_type, status_code, message in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, message
    return 500, "UNHANDLED_ERROR"


def request_path(request: Request) -> str:
    """Return the still-encoded path below the mount point."""

    raw = request.scope.get("raw_path")
    path = raw.decode("latin-1") if raw else quote(request.scope["path"])
    root_path = request.scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        path = path[len(root_path):]
    return path


def disconnect_probe(request: Request) -> Callable[[], bool]:
    """Build a callable that reports client disconnects from a worker thread."""

    def cancel_requested() -> bool:
        return anyio.from_thread.run(request.is_disconnected)

    return cancel_requested


def wants_json(request: Request, output: Optional[str]) -> bool:
    if output:
        return output.lower() == "json"
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


def create_app(
    config: SigningConfig,
    *,
    store: Optional[ObjectStore] = None,
    controller: Optional[IndexController] = None,
) -> FastAPI:
    package_info = load_package_info()
    controller = controller or IndexController(config, store)
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    app = FastAPI(
        title="s3-index",
        version=package_info.version or "0.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.controller = controller

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            ACCESS_LOGGER.info(
                "%s %s %s %.1fms",
                request.method,
                request.url.path,
                status_code,
                (time.perf_counter() - started) * 1000,
            )

    @app.exception_handler(PathError)
    @app.exception_handler(ListError)
    async def handle_errors(request: Request, exc: Exception) -> Response:
        status_code, message = error_status(exc)
        if isinstance(exc, StoreUnavailableError):
            LOGGER.error("store unavailable: %s", exc, exc_info=exc.cause)
        elif status_code >= 500:
            LOGGER.error("listing failed: %s", exc)
        else:
            LOGGER.info("rejected %s: %s", request.url.path, exc)
        return PlainTextResponse(message, status_code=status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> Response:
        LOGGER.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        status_code, message = error_status(exc)
        return PlainTextResponse(message, status_code=status_code)

    @app.api_route("/{path:path}", methods=["GET", "HEAD"])
    def browse(request: Request, output: Optional[str] = Query(None, alias="format")) -> Response:
        result = controller.browse(request_path(request), cancel_requested=disconnect_probe(request))
        if not isinstance(result, DirectoryListing):
            return RedirectResponse(result.url, status_code=307)
        if wants_json(request, output):
            return JSONResponse(listing_to_dict(result))
        return templates.TemplateResponse(
            request,
            "listing.html",
            {
                "title": result.path,
                "path": result.path,
                "parent": directory_url(result.parent),
                "items": listing_rows(result, config.delimiter),
                "package": package_info,
            },
        )

    return app

"""FastAPI application setup."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gitplumbers_bridge import __version__
from gitplumbers_bridge.configuration.env import Settings, get_settings
from gitplumbers_bridge.exceptions import BridgeError, HandlerFailure
from gitplumbers_bridge.store.abc import DocumentStore
from gitplumbers_bridge.store.memory import InMemoryDocumentStore
from gitplumbers_bridge.workflows.driver import BridgeContext, classify_error

from . import routes, webhooks

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    context: BridgeContext | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Without an explicit ``context`` the bridge is built from ``settings`` on
    the first request that needs it.
    """
    app = FastAPI(
        title="gitPlumbers Bridge",
        description="GitHub App bridge between repositories and the gitPlumbers dashboard",
        version=__version__,
    )

    app.state.settings = settings or (context.settings if context is not None else get_settings())
    app.state.store = store or (context.store if context is not None else InMemoryDocumentStore())
    app.state.context = context

    # Exception handlers
    @app.exception_handler(HandlerFailure)
    async def handler_failure_handler(_request: Request, exc: HandlerFailure) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "code": exc.code})

    @app.exception_handler(BridgeError)
    async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
        failure = classify_error(exc, f"handle {request.url.path}")
        logger.error("Unhandled bridge error", path=request.url.path, status_code=failure.status_code, error=str(exc))
        return JSONResponse(status_code=failure.status_code, content={"error": failure.message, "code": failure.code})

    app.include_router(webhooks.router)
    app.include_router(routes.router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app

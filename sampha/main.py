"""FastAPI application entry point: API router, CORS/logging, SPA static files."""

import logging
from typing import Optional

from fastapi import FastAPI, Request

from sampha import __version__
from sampha.assets import AssetStore
from sampha.config import Settings, settings as default_settings
from sampha.middleware import CORSLoggingMiddleware, DeadlineMiddleware
from sampha.routers import api
from sampha.static import build_resolver

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[AssetStore] = None) -> FastAPI:
    """
    Compose the handler chain.

    ``store`` defaults to a snapshot of ``settings.STATIC_DIR`` taken now;
    it is never reloaded for the life of the app.
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=__version__,
        # Keep /docs, /redoc and /openapi.json available as SPA routes
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.service_name = settings.SERVICE_NAME
    app.state.resolver = build_resolver(store=store, static_dir=settings.STATIC_DIR)

    # Registered before the catch-all so /api/* never falls through to the SPA
    app.include_router(api.router)

    @app.api_route("/{full_path:path}", methods=["GET", "HEAD"], include_in_schema=False)
    async def static_files(request: Request, full_path: str):
        return request.app.state.resolver.resolve(
            request.url.path, head=request.method == "HEAD"
        )

    # Last added is outermost: CORS/logging wraps the deadline
    app.add_middleware(
        DeadlineMiddleware,
        read_timeout=settings.READ_TIMEOUT,
        write_timeout=settings.WRITE_TIMEOUT,
    )
    app.add_middleware(CORSLoggingMiddleware)

    logger.info("api routes & static file handler registered")
    logger.info("available endpoints:")
    logger.info("   • GET  /api/           - health check")
    logger.info("   • GET  /               - web interface")
    return app


app = create_app()

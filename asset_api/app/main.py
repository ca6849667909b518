# main.py

"""FastAPI application serving asset uploads for the CMS admin panel."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from config import Settings, get_settings

from .config.validate import validate_on_boot
from .middlewares import LoggingMiddleware, PrometheusMiddleware, RequestIdMiddleware
from .obs import init_sentry
from .obs.logging import configure_logging
from .routes_metrics import router as metrics_router
from .routes_upload import router as upload_router
from .storage import AssetStorage, select_backend

logger = logging.getLogger("api")


class CacheStaticFiles(StaticFiles):
    """Serve stored uploads with long-lived cache headers.

    Object keys are never reused, so a URL's content never changes.
    """

    async def get_response(self, path, scope):
        response = await super().get_response(path, scope)
        if response.status_code == 200:
            response.headers["Cache-Control"] = "public, max-age=31536000, immutable"
        return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around an explicit :class:`Settings` object."""

    settings = settings or get_settings()
    configure_logging(settings.log_level.upper())
    validate_on_boot(settings)
    init_sentry(settings.error_dsn, settings.app_env)

    app = FastAPI(title="Asset Storage API", version="0.1.0")
    app.state.settings = settings
    app.state.storage = AssetStorage(settings)

    # Middlewares run in reverse order of registration
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Asset-Exists", "X-Asset-Size", "X-Request-ID"],
    )

    app.include_router(upload_router)
    app.include_router(metrics_router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "storage": select_backend(settings).value}

    Path(settings.uploads_root_path).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.uploads_url_prefix,
        CacheStaticFiles(directory=settings.uploads_root_path),
        name="uploads",
    )

    logger.info("storage backend: %s", select_backend(settings).value)
    return app


app = create_app()

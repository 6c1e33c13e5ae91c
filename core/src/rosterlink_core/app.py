from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.staticfiles import StaticFiles

from rosterlink_core import __version__
from rosterlink_core.api.models import fail
from rosterlink_core.api.router import router as api_router
from rosterlink_core.config import (
    CoreConfig,
    LoggingConfig,
    load_core_config,
    require_runtime_settings,
)
from rosterlink_core.services import build_portal_services
from rosterlink_core.store import RecordStore
from rosterlink_core.ui.render import STATIC_DIR as UI_STATIC_DIR
from rosterlink_core.ui.router import router as ui_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_file_logging(cfg: LoggingConfig) -> None:
    root = logging.getLogger()
    root.setLevel(cfg.level.upper())

    if not cfg.file:
        return

    log_path = Path(cfg.file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Avoid adding duplicate handlers if reloaded
    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=cfg.max_size_mb * 1024 * 1024,
        backupCount=cfg.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)


def create_app(
    config: CoreConfig | None = None,
    *,
    store: RecordStore | None = None,
) -> FastAPI:
    """Build the portal application.

    `config` defaults to `load_core_config()`; `store` defaults to the provider the
    config selects. A caller-supplied store is not closed on shutdown.
    """

    cfg = config if config is not None else load_core_config()

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        require_runtime_settings(cfg)
        configure_file_logging(cfg.logging)

        services = build_portal_services(cfg, store=store)
        app.state.portal = services

        logger.info("RosterLink starting up")
        logger.info(
            "Record store: %s, token ttl: %d min, edit policy: %s",
            services.store.provider_name,
            cfg.auth.token_ttl_minutes,
            cfg.auth.edit_policy.value,
        )

        try:
            yield
        finally:
            if store is None:
                await services.store.aclose()

    app = FastAPI(title="RosterLink", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        # Dashboard paths carry the token; keep it out of the logs.
        path = request.url.path
        if path.startswith("/dashboard/"):
            path = "/dashboard/<token>"
        logger.info(f"{request.method} {path} - {response.status_code}")
        return response

    cors_origins = cfg.network.cors_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content=fail("Invalid request body"))

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(exc.detail if isinstance(exc.detail, str) else "HTTP error"),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Avoid leaking internals.
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=fail("Internal server error"))

    if UI_STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=str(UI_STATIC_DIR)), name="static")
    else:
        logger.warning(
            "UI static directory is missing (%s); /static will not be served",
            UI_STATIC_DIR,
        )

    app.include_router(api_router)
    app.include_router(ui_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app

"""
FastAPI application factory.

Assembles the app, builds the process-wide services, registers all
routers and error handlers, and wires up lifecycle events.
Database schema is managed by Alembic — NOT create_all.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from boardgame_event.controllers.account_controller import router as account_router
from boardgame_event.controllers.auth_controller import router as auth_router
from boardgame_event.controllers.bgg_controller import router as bgg_router
from boardgame_event.controllers.session_controller import router as session_router
from boardgame_event.core.config import Settings, settings as default_settings
from boardgame_event.core.database import engine
from boardgame_event.core.errors import (
    INTERNAL_ERROR,
    INTERNAL_ERROR_MESSAGE,
    VALIDATION_ERROR,
    APIError,
)
from boardgame_event.models import Base  # noqa: F401  (registers all models)
from boardgame_event.services import build_services

logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        logger.debug("Request validation failed: %s", exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": VALIDATION_ERROR, "message": "Ungültige Anfrage."},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": INTERNAL_ERROR, "message": INTERNAL_ERROR_MESSAGE},
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    # Built once here, handed to routes via `get_services`
    app.state.services = build_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    # ── Register routers ─────────────────────────────────────────────
    app.include_router(account_router)
    app.include_router(session_router)
    app.include_router(auth_router)
    app.include_router(bgg_router)

    # ── Startup / Shutdown ───────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup() -> None:
        """
        NOTE: Database schema is managed by Alembic migrations.
        Run `alembic upgrade head` before starting the app, and
        `python -m boardgame_event.scripts.create_admin` once.
        """
        logger.info(
            "%s starting — image cache at %s (scraping %s)",
            settings.APP_NAME,
            settings.BGG_IMAGE_CACHE_DIR,
            "enabled" if settings.BGG_SCRAPE_ENABLED else "disabled",
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await engine.dispose()
        logger.info("Database engine disposed.")

    # ── Health check ─────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()

"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, RedirectResponse

from olimpo.attendance.router import router as attendance_router
from olimpo.auth.router import router as auth_router
from olimpo.blog.router import router as blog_router
from olimpo.config import get_settings
from olimpo.dashboard.router import router as dashboard_router
from olimpo.database import close_db, init_db
from olimpo.debug.router import router as debug_router
from olimpo.health.router import router as health_router
from olimpo.memberships.router import router as memberships_router
from olimpo.middleware import setup_middleware
from olimpo.notifications.router import router as notifications_router
from olimpo.products.router import router as products_router
from olimpo.redis_client import close_redis, init_redis
from olimpo.routines.router import router as routines_router
from olimpo.uploads.router import router as uploads_router
from olimpo.users.router import router as users_router

logger = structlog.get_logger()

WELCOME_MESSAGE = "¡Bienvenido a la API de Olimpo Gym!"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    logger.info("app_started", environment=settings.environment, debug=settings.debug)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Olimpo Gym API",
        description="Backend API for Olimpo Gym: members, memberships, attendance, content and notifications",
        version=settings.app_version,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(routines_router)
    app.include_router(memberships_router)
    app.include_router(attendance_router)
    app.include_router(notifications_router)
    app.include_router(blog_router)
    app.include_router(products_router)
    app.include_router(uploads_router)
    app.include_router(dashboard_router)
    if settings.debug:
        app.include_router(debug_router)

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/api/docs", status_code=302)

    @app.get("/api", response_class=PlainTextResponse, tags=["Health"])
    async def welcome() -> str:
        return WELCOME_MESSAGE

    return app


app = create_app()

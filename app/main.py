"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.database import check_db_connection, close_db, get_db_context
from app.core.exceptions import AppException, problem_details, problem_response
from app.core.logging import get_logger, setup_logging
from app.core.redis import close_redis, init_redis
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_logging import RequestLoggingMiddleware
from app.modules.settings.cache import SettingsCache

setup_logging()
logger = get_logger(__name__)


async def _warm_settings_cache(cache: SettingsCache) -> None:
    try:
        async with get_db_context() as db:
            await cache.warm(db)
    except Exception as e:
        # First request will load it instead
        logger.warning("settings_cache_warmup_failed", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect to PostgreSQL and Redis on startup, release them on shutdown.

    Redis is optional: without it rate limiting, token revocation and the
    document cache are skipped.
    """
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if await check_db_connection():
        logger.info("database_connected")
        await _warm_settings_cache(app.state.settings_cache)
    else:
        logger.error("database_connection_failed")

    try:
        await init_redis()
    except Exception as e:
        logger.warning("redis_init_failed", error=str(e))

    yield

    logger.info("application_shutting_down")
    await close_redis()
    await close_db()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Collaborative strategy document with suggestions and discussion",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # One settings cache per process; admin writes invalidate it
    app.state.settings_cache = SettingsCache(settings.settings_cache_ttl_seconds)

    _setup_middleware(app)
    _setup_exception_handlers(app)
    _setup_routers(app)

    return app


def _setup_middleware(app: FastAPI) -> None:
    # Starlette runs the last added middleware first:
    # request logging -> rate limit -> CORS -> routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


def _setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        problem = {**exc.detail, "instance": request.url.path}
        return problem_response(problem, headers=exc.headers)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", error=str(exc), path=request.url.path)
        problem = problem_details(
            500,
            "internal_error",
            "An unexpected error occurred" if settings.is_production else str(exc),
            instance=request.url.path,
        )
        return problem_response(problem)


def _setup_routers(app: FastAPI) -> None:
    from app.modules.admin.router import router as admin_router
    from app.modules.auth.router import router as auth_router
    from app.modules.comments.router import router as comments_router
    from app.modules.document.router import router as document_router
    from app.modules.health.router import router as health_router
    from app.modules.notifications.router import router as notifications_router
    from app.modules.profiles.router import router as profiles_router
    from app.modules.settings.router import router as settings_router
    from app.modules.suggestions.router import router as suggestions_router

    # Probes stay outside the API prefix
    app.include_router(health_router, tags=["Health"])

    app.include_router(
        auth_router,
        prefix=f"{settings.api_prefix}/auth",
        tags=["Authentication"],
    )

    for router in (
        document_router,
        suggestions_router,
        comments_router,
        notifications_router,
        profiles_router,
        admin_router,
    ):
        app.include_router(router, prefix=settings.api_prefix)

    app.include_router(settings_router, prefix=settings.api_prefix, tags=["Settings"])


app = create_app()

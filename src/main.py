from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
from datetime import datetime
from typing import Callable
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from redis.asyncio import Redis

from src.config import GameSettings
from src.exceptions import (
    GameError,
    InternalError,
    InvalidRequestError,
    MethodNotAllowedError,
    NotFoundError,
)
from src.models.schemas import utcnow
from src.routers import cards
from src.security.rate_limit import InMemoryRateLimiter, RedisRateLimiter
from src.security.request_guard import RequestGuard
from src.services.game_db import GameDatabase
from src.services.progress_service import ProgressService

logging.basicConfig(level=logging.INFO)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def build_request_guard(settings: GameSettings) -> tuple[RequestGuard, Redis | None]:
    """Guard with the configured rate limit backend; the Redis client is returned for shutdown"""
    if settings.rate_limit_backend == "redis":
        redis = Redis.from_url(
            settings.redis_url, decode_responses=True, health_check_interval=30
        )
        return RequestGuard(rate_limiter=RedisRateLimiter(redis)), redis
    return RequestGuard(rate_limiter=InMemoryRateLimiter()), None


def error_response(error: GameError) -> JSONResponse:
    return JSONResponse(status_code=error.status, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GameError)
    async def handle_game_error(request: Request, exc: GameError):
        if exc.status >= 500:
            logging.error(f"{request.method} {request.url.path} failed: {exc}")
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return error_response(MethodNotAllowedError())
        if exc.status_code == 404:
            return error_response(NotFoundError())
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail), "code": "HTTP_ERROR", "status": exc.status_code},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(InvalidRequestError())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logging.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
        return error_response(InternalError())


def create_app(
    settings: GameSettings | None = None,
    database: GameDatabase | None = None,
    request_guard: RequestGuard | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """Build the API with its guard, storage and scheduler.

    Everything stateful is constructed here once and shared through app.state.
    """
    settings = settings or GameSettings()
    redis = None
    if request_guard is None:
        request_guard, redis = build_request_guard(settings)
    if database is None:
        from src.db import Session, engine

        database = GameDatabase(
            engine,
            Session,
            auto_provision=settings.auto_provision_demo_entities,
            default_max_energy=settings.default_max_energy,
            max_retries=settings.db_max_retries,
        )
    progress_service = ProgressService(
        database, regen_interval_seconds=settings.regen_interval_seconds, clock=clock
    )
    scheduler = AsyncIOScheduler()

    @asynccontextmanager
    async def lifespan(app):
        """Create tables and start the periodic guard sweep.
        This function is called to start the server.
        """
        await database.create_table()

        # Lapsed rate-limit and cooldown entries are otherwise kept forever
        scheduler.add_job(
            request_guard.sweep,
            "interval",
            minutes=settings.guard_sweep_minutes,
        )
        scheduler.start()
        try:
            yield
        finally:
            scheduler.shutdown(wait=False)
            if redis is not None:
                await redis.aclose()
            await database.dispose()
            logging.info("Stop Server")

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.request_guard = request_guard
    app.state.progress_service = progress_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(cards.card_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host="0.0.0.0", port=8080)

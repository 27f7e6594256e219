import asyncio
import contextlib
import sys
import traceback
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, cast

import structlog
from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from pricing.constants import VERSION
from pricing.exceptions import (
    PricingError,
    QuotaExceededError,
    StoreError,
    UnsupportedTokenError,
    UpstreamError,
)
from pricing.ioc import build_container, setup_dishka
from pricing.ioc.services import SchedulerProvider
from pricing.logging import configure as configure_logging
from pricing.logging import generate_correlation_id, get_exception_message, get_logger
from pricing.redis import Redis
from pricing.sentry import configure_sentry
from pricing.settings import Settings
from pricing.utils.common import excepthook_handler, handle_event_loop_exception
from pricing.views import router

logger = get_logger("pricing")


async def check_store(container: AsyncContainer) -> None:
    redis = await container.get(Redis)
    try:
        await cast(Awaitable[bool], redis.ping())
    except Exception as e:
        logger.error(f"Redis connection failed:{get_exception_message(e)}")
        raise StoreError("Redis is unreachable, refusing to start") from e
    logger.info("Connected to Redis")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    sys.excepthook = excepthook_handler(logger, sys.excepthook)
    asyncio.get_running_loop().set_exception_handler(
        lambda *args, **kwargs: handle_event_loop_exception(logger, *args, **kwargs)
    )
    container: AsyncContainer = app.state.dishka_container
    await check_store(container)
    for service in SchedulerProvider.TO_PRELOAD:
        await container.get(service)
    logger.info(f"Pricing server {VERSION} started")
    yield
    await container.close()


class LogCorrelationIdMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return await self.app(scope, receive, send)
        structlog.contextvars.bind_contextvars(
            correlation_id=generate_correlation_id(),
            method=scope["method"],
            path=scope["path"],
        )
        await self.app(scope, receive, send)
        structlog.contextvars.unbind_contextvars("correlation_id", "method", "path")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


async def unsupported_token_handler(request: Request, exc: UnsupportedTokenError) -> JSONResponse:
    return error_response(422, str(exc))


async def quota_exceeded_handler(request: Request, exc: QuotaExceededError) -> JSONResponse:
    logger.warning(f"Price request refused: {exc}")
    return error_response(503, "Monthly API limit reached, no cached price available")


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error(f"Error fetching price: {exc}")
    return error_response(503, "Failed to fetch price")


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(f"Store error: {exc}")
    return error_response(503, "Price cache unavailable")


async def pricing_error_handler(request: Request, exc: PricingError) -> JSONResponse:
    logger.error(get_exception_message(exc))
    return error_response(500, "Failed to fetch price")


exception_handlers: dict[type[Exception], Callable[[Request, Any], Awaitable[JSONResponse]]] = {
    UnsupportedTokenError: unsupported_token_handler,
    QuotaExceededError: quota_exceeded_handler,
    UpstreamError: upstream_error_handler,
    StoreError: store_error_handler,
    PricingError: pricing_error_handler,
}


def add_exception_handlers(app: FastAPI) -> None:
    for exc_type, handler in exception_handlers.items():
        app.add_exception_handler(exc_type, handler)

    @app.exception_handler(500)
    async def exception_handler(request: Request, exc: Exception) -> Response:
        # this happens when exception is during container finalization
        # as it is rare enough, we must log it
        if type(exc) in exception_handlers:
            return await exception_handlers[type(exc)](request, exc)
        logger.error(traceback.format_exc())
        return PlainTextResponse("Internal Server Error", status_code=500)


def get_app(settings: Settings) -> FastAPI:
    app = FastAPI(
        lifespan=lifespan,
        title=settings.API_TITLE,
        version=VERSION,
        root_path=settings.ROOT_PATH,
        root_path_in_servers=False,
    )
    app.add_middleware(LogCorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_exception_handlers(app)
    app.include_router(router)
    return app


def configure_production_app() -> FastAPI:
    settings = Settings()
    configure_logging(settings=settings)
    configure_sentry(settings)
    container = build_container(settings)
    app = get_app(settings)
    setup_dishka(container=container, app=app)
    return app

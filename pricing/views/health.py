from collections.abc import Awaitable
from typing import Any, cast

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from pricing.redis import Redis

router = APIRouter(route_class=DishkaRoute)


@router.get("/live", response_model=dict)
async def live() -> Any:
    return {"status": "ok"}


@router.get("/ready", response_model=dict)
async def ready(redis: FromDishka[Redis]) -> Any:
    try:
        await cast(Awaitable[bool], redis.ping())
    except Exception:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "detail": "redis unreachable"},
        )
    return {"status": "ok"}

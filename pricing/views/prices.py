from typing import Any, Literal

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from pricing.services.pricing import PricingService

router = APIRouter(route_class=DishkaRoute)


@router.get("/price")
async def get_price(
    pricing_service: FromDishka[PricingService],
    token: str | None = None,
    fiat: str | None = None,
    side: Literal["buy", "sell"] | None = None,
) -> Any:
    if not token or not fiat:
        return JSONResponse(status_code=400, content={"status": "error", "message": "Token and fiat are required"})
    quote = await pricing_service.get_quote(token, fiat, side)
    return {"status": "success", "data": quote.model_dump()}

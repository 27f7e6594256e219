import secrets
from typing import Any

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pricing.schemas.quotes import QuotaResetInput
from pricing.services.pricing import PricingService
from pricing.settings import Settings

router = APIRouter(route_class=DishkaRoute)

bearer_scheme = HTTPBearer(auto_error=False)


def check_admin_token(settings: Settings, credentials: HTTPAuthorizationCredentials | None) -> None:
    if not settings.ADMIN_TOKEN:
        raise HTTPException(404, "Not found")
    if credentials is None or not secrets.compare_digest(credentials.credentials, settings.ADMIN_TOKEN):
        raise HTTPException(401, "Unauthorized")


@router.get("")  # Note: we use empty string there as it's included as subrouter, to avoid redirects
async def get_usage(pricing_service: FromDishka[PricingService]) -> Any:
    status = await pricing_service.get_quota_status()
    return {"status": "success", "data": status.model_dump()}


@router.post("/reset")
async def reset_usage(
    data: QuotaResetInput,
    pricing_service: FromDishka[PricingService],
    settings: FromDishka[Settings],
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> Any:
    check_admin_token(settings, credentials)
    status = await pricing_service.reset_quota(data.value)
    return {"status": "success", "data": status.model_dump()}

from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter

from pricing.views.health import router as health_router
from pricing.views.prices import router as prices_router
from pricing.views.usage import router as usage_router

router = APIRouter(route_class=DishkaRoute)


router.include_router(prices_router, tags=["prices"])
router.include_router(usage_router, prefix="/api-usage", tags=["api-usage"])
router.include_router(health_router, prefix="/health", tags=["health"])

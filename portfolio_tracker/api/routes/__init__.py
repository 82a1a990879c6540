"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .alerts import router as alerts_router
from .analytics import router as analytics_router
from .market import router as market_router
from .positions import router as positions_router
from .preferences import router as preferences_router
from .prices import router as prices_router
from .proxy import router as proxy_router
from .reports import router as reports_router

api_router = APIRouter()
api_router.include_router(positions_router, prefix="/positions", tags=["positions"])
api_router.include_router(prices_router, prefix="/prices", tags=["prices"])
api_router.include_router(analytics_router, prefix="/analytics", tags=["analytics"])
api_router.include_router(alerts_router, prefix="/alerts", tags=["alerts"])
api_router.include_router(preferences_router)
api_router.include_router(market_router, prefix="/market", tags=["market"])
api_router.include_router(reports_router, prefix="/reports", tags=["reports"])
api_router.include_router(proxy_router, prefix="/proxy", tags=["proxy"])

__all__ = ["api_router"]

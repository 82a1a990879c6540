"""News and earnings for held tickers."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_tracker.api.dependencies import get_dashboard
from portfolio_tracker.schemas import EarningsEventSchema, NewsItemSchema
from portfolio_tracker.services.dashboard import PortfolioDashboard

router = APIRouter()


@router.get("/news", response_model=list[NewsItemSchema])
async def news(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> list[NewsItemSchema]:
    return [NewsItemSchema.model_validate(n) for n in await dashboard.news()]


@router.get("/earnings", response_model=list[EarningsEventSchema])
async def earnings(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> list[EarningsEventSchema]:
    return [EarningsEventSchema.model_validate(e) for e in await dashboard.earnings()]


__all__ = ["router"]

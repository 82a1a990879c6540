"""Price cache endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from portfolio_tracker.api.dependencies import get_dashboard
from portfolio_tracker.schemas import PriceQuoteSchema, PricesResponse, RefreshResponse, TickerHistoryResponse
from portfolio_tracker.services.dashboard import PortfolioDashboard

router = APIRouter()


@router.get("", response_model=PricesResponse)
async def get_prices(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> PricesResponse:
    quotes = {ticker: PriceQuoteSchema.model_validate(q) for ticker, q in dashboard.prices.quotes.items()}
    return PricesResponse(status=dashboard.prices.status, quotes=quotes)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_prices(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> RefreshResponse:
    result = await dashboard.refresh()
    return RefreshResponse.model_validate(result)


@router.get("/{ticker}/history", response_model=TickerHistoryResponse)
async def ticker_history(ticker: str, dashboard: PortfolioDashboard = Depends(get_dashboard)) -> TickerHistoryResponse:
    detail = await dashboard.ticker_history(ticker)
    if detail is None:
        # A newer request for the detail view replaced this one.
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Superseded by a newer request")
    return TickerHistoryResponse.model_validate(detail)


__all__ = ["router"]

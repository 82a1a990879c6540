"""Derived portfolio views."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portfolio_tracker.api.dependencies import get_dashboard
from portfolio_tracker.config.catalog import ACCOUNTS
from portfolio_tracker.schemas import (
    BreakdownResponse,
    CorrelationResponse,
    HistoryResponse,
    MoversResponse,
    PositionRowSchema,
    SeriesPointSchema,
    SliceSchema,
    SummaryResponse,
    TreemapRectSchema,
    ValuationSchema,
    WhatIfRequest,
    WhatIfResponse,
)
from portfolio_tracker.services import analytics, treemap
from portfolio_tracker.services.dashboard import PortfolioDashboard
from portfolio_tracker.services.lifecycle import daily_pl_bars

router = APIRouter()


def _account(account: str = Query(analytics.ALL_ACCOUNTS)) -> str:
    if account != analytics.ALL_ACCOUNTS and account not in ACCOUNTS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown account {account}")
    return account


@router.get("/summary", response_model=SummaryResponse)
async def summary(
    account: str = Depends(_account),
    dashboard: PortfolioDashboard = Depends(get_dashboard),
) -> SummaryResponse:
    return SummaryResponse(
        account=account,
        all=ValuationSchema.model_validate(dashboard.valuation()),
        filtered=ValuationSchema.model_validate(dashboard.valuation(account)),
        data_source=dashboard.prices.status.value,
    )


@router.get("/breakdown", response_model=BreakdownResponse)
async def breakdown(
    account: str = Depends(_account),
    dashboard: PortfolioDashboard = Depends(get_dashboard),
) -> BreakdownResponse:
    positions = dashboard.positions.positions
    prices = dashboard.prices.prices()
    return BreakdownResponse(
        accounts=[SliceSchema.model_validate(s) for s in analytics.account_breakdown(positions, prices)],
        sectors=[SliceSchema.model_validate(s) for s in analytics.sector_breakdown(positions, prices, account)],
        tickers=[SliceSchema.model_validate(s) for s in analytics.ticker_allocation(positions, prices, account)],
    )


@router.get("/positions", response_model=list[PositionRowSchema])
async def position_rows(
    account: str = Depends(_account),
    dashboard: PortfolioDashboard = Depends(get_dashboard),
) -> list[PositionRowSchema]:
    rows = analytics.position_rows(dashboard.positions.positions, dashboard.prices.prices(), account)
    return [PositionRowSchema.model_validate(r) for r in rows]


@router.get("/movers", response_model=MoversResponse)
async def movers(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> MoversResponse:
    result = analytics.gainers_and_losers(dashboard.positions.positions, dashboard.prices.prices())
    return MoversResponse.model_validate(result)


@router.get("/correlation", response_model=CorrelationResponse)
async def correlation(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> CorrelationResponse:
    return CorrelationResponse.model_validate(await dashboard.correlation())


@router.get("/treemap", response_model=list[TreemapRectSchema])
async def treemap_layout(
    width: float = Query(1000.0, gt=0),
    height: float = Query(600.0, gt=0),
    account: str = Depends(_account),
    dashboard: PortfolioDashboard = Depends(get_dashboard),
) -> list[TreemapRectSchema]:
    scoped = analytics.filter_account(dashboard.positions.positions, account)
    rows = analytics.ticker_performance(scoped, dashboard.prices.prices())
    rects = treemap.layout(treemap.items_from_performance(rows), width, height)
    return [TreemapRectSchema.model_validate(r) for r in rects]


@router.get("/history", response_model=HistoryResponse)
async def history(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> HistoryResponse:
    snapshots = dashboard.snapshots
    values = await snapshots.history.series()
    daily = daily_pl_bars(await snapshots.daily_pl.series())
    return HistoryResponse(
        history=[SeriesPointSchema.model_validate(p) for p in values],
        daily_pl=[SeriesPointSchema.model_validate(p) for p in daily],
        all_time_high=await snapshots.all_time_high.load(),
    )


@router.post("/what-if", response_model=WhatIfResponse | None)
async def what_if(
    payload: WhatIfRequest,
    dashboard: PortfolioDashboard = Depends(get_dashboard),
) -> WhatIfResponse | None:
    result = analytics.what_if(
        dashboard.positions.positions,
        dashboard.prices.prices(),
        payload.ticker,
        payload.shares,
        payload.price,
    )
    if result is None:
        return None
    return WhatIfResponse(
        ticker=result.ticker,
        shares=result.shares,
        price=result.price,
        before=ValuationSchema.model_validate(result.before),
        after=ValuationSchema.model_validate(result.after),
        value_delta=result.value_delta,
        pl_delta=result.pl_delta,
    )


__all__ = ["router"]

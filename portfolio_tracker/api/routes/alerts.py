"""Price alert endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from portfolio_tracker.api.dependencies import get_dashboard
from portfolio_tracker.schemas import AlertCreateRequest, BannerSchema, PriceAlertSchema
from portfolio_tracker.services.dashboard import PortfolioDashboard

router = APIRouter()


@router.get("", response_model=list[PriceAlertSchema])
async def list_alerts(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> list[PriceAlertSchema]:
    return [PriceAlertSchema.model_validate(a) for a in dashboard.alerts.alerts]


@router.post("", response_model=PriceAlertSchema, status_code=status.HTTP_201_CREATED)
async def create_alert(
    payload: AlertCreateRequest,
    dashboard: PortfolioDashboard = Depends(get_dashboard),
) -> PriceAlertSchema:
    alert = await dashboard.alerts.create(payload.ticker, payload.target_price, payload.direction)
    if alert is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Incomplete alert")
    return PriceAlertSchema.model_validate(alert)


@router.get("/banners", response_model=list[BannerSchema])
async def active_banners(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> list[BannerSchema]:
    return [BannerSchema.model_validate(b) for b in dashboard.alerts.banners.active()]


@router.delete("/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_alert(alert_id: int, dashboard: PortfolioDashboard = Depends(get_dashboard)) -> Response:
    if not await dashboard.alerts.delete(alert_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]

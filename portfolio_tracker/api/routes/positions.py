"""Holdings endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from portfolio_tracker.api.dependencies import get_dashboard
from portfolio_tracker.schemas import ImportResultSchema, PositionCreateRequest, PositionSchema
from portfolio_tracker.services.dashboard import PortfolioDashboard
from portfolio_tracker.services.positions import parse_position_form

router = APIRouter()


@router.get("", response_model=list[PositionSchema])
async def list_positions(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> list[PositionSchema]:
    return [PositionSchema.model_validate(p) for p in dashboard.positions.positions]


@router.post("", response_model=PositionSchema, status_code=status.HTTP_201_CREATED)
async def create_position(
    payload: PositionCreateRequest,
    dashboard: PortfolioDashboard = Depends(get_dashboard),
) -> PositionSchema:
    draft = parse_position_form(payload.ticker, payload.shares, payload.avg_cost, payload.account)
    if draft is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Incomplete position")
    position = await dashboard.add_position(draft)
    return PositionSchema.model_validate(position)


@router.post("/import", response_model=ImportResultSchema)
async def import_positions(request: Request, dashboard: PortfolioDashboard = Depends(get_dashboard)) -> ImportResultSchema:
    text = (await request.body()).decode("utf-8-sig", errors="replace")
    created = await dashboard.import_csv(text)
    return ImportResultSchema(imported=len(created), positions=[PositionSchema.model_validate(p) for p in created])


@router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_position(position_id: int, dashboard: PortfolioDashboard = Depends(get_dashboard)) -> Response:
    if not await dashboard.remove_position(position_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Position not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]

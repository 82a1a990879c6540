"""Badges and UI preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_tracker.api.dependencies import get_dashboard
from portfolio_tracker.schemas import AchievementSchema, ThemeSchema
from portfolio_tracker.services.dashboard import PortfolioDashboard

router = APIRouter()


@router.get("/achievements", response_model=list[AchievementSchema], tags=["achievements"])
async def achievements(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> list[AchievementSchema]:
    state = dashboard.achievements.state
    return [
        AchievementSchema(
            id=rule.badge_id,
            title=rule.title,
            description=rule.description,
            unlocked=state.get(rule.badge_id, False),
        )
        for rule in dashboard.achievements.rules
    ]


@router.get("/preferences/theme", response_model=ThemeSchema, tags=["preferences"])
async def get_theme(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> ThemeSchema:
    return ThemeSchema(theme=await dashboard.theme.get())


@router.put("/preferences/theme", response_model=ThemeSchema, tags=["preferences"])
async def put_theme(payload: ThemeSchema, dashboard: PortfolioDashboard = Depends(get_dashboard)) -> ThemeSchema:
    return ThemeSchema(theme=await dashboard.theme.set(payload.theme))


__all__ = ["router"]

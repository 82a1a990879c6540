"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from portfolio_tracker.services.dashboard import PortfolioDashboard


def get_dashboard(request: Request) -> PortfolioDashboard:
    dashboard = getattr(request.app.state, "dashboard", None)
    if dashboard is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Dashboard not initialised")
    return dashboard


__all__ = ["get_dashboard"]

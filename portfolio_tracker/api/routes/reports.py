"""Downloadable reports."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Response
from starlette.concurrency import run_in_threadpool

from portfolio_tracker.api.dependencies import get_dashboard
from portfolio_tracker.services.dashboard import PortfolioDashboard

router = APIRouter()


@router.get("/portfolio.pdf", response_class=Response)
async def portfolio_pdf(dashboard: PortfolioDashboard = Depends(get_dashboard)) -> Response:
    content = await run_in_threadpool(dashboard.report_pdf)
    filename = f"portfolio-{date.today().isoformat()}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


__all__ = ["router"]

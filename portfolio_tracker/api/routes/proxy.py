"""Pass-through proxy for the Yahoo Finance chart endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from portfolio_tracker.providers import yahoo

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Cache-Control": "s-maxage=300, stale-while-revalidate=600",
}


@router.get("/yahoo-chart")
async def yahoo_chart(
    symbol: str | None = None,
    interval: str | None = None,
    range: str | None = None,  # noqa: A002 - upstream query parameter name
) -> JSONResponse:
    if not symbol or not interval or not range:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required params: symbol, interval, range"},
            headers={"Access-Control-Allow-Origin": "*"},
        )
    try:
        status_code, payload = await yahoo.fetch_chart(symbol, interval, range)
    except Exception as exc:  # noqa: BLE001 - relayed to the caller as a 500
        logger.exception("Chart proxy failed for %s", symbol)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch from Yahoo Finance", "details": str(exc)},
            headers={"Access-Control-Allow-Origin": "*"},
        )
    return JSONResponse(status_code=status_code, content=payload, headers=PROXY_HEADERS)


__all__ = ["router"]

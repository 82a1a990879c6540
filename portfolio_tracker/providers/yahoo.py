"""Pass-through client for the Yahoo Finance chart endpoint."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from portfolio_tracker.config import get_settings

USER_AGENT = "Mozilla/5.0"


async def fetch_chart(
    symbol: str,
    interval: str,
    range_: str,
    *,
    client: httpx.AsyncClient | None = None,
) -> tuple[int, Any]:
    """Fetch a chart payload and return the upstream ``(status_code, json)`` pair."""

    settings = get_settings()
    url = f"{settings.yahoo_chart_url.rstrip('/')}/{quote(symbol, safe='')}"
    params = {"interval": interval, "range": range_}
    headers = {"User-Agent": USER_AGENT}
    if client is not None:
        response = await client.get(url, params=params, headers=headers, timeout=settings.http_timeout_seconds)
    else:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as owned:
            response = await owned.get(url, params=params, headers=headers)
    return response.status_code, response.json()


__all__ = ["fetch_chart"]

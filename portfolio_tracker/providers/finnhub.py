"""Finnhub client used for quotes, daily candles, company news and earnings."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

import httpx

from portfolio_tracker.config import get_settings
from portfolio_tracker.providers.base import EarningsEvent, LiveQuote, NewsItem

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class FinnhubError(RuntimeError):
    """Raised when Finnhub returns an error payload."""


class FinnhubClient:
    """Thin async Finnhub REST client with a single bounded retry on HTTP 429."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        backoff_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.finnhub_api_key
        self._base_url = (base_url or settings.finnhub_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._backoff = backoff_seconds if backoff_seconds is not None else settings.rate_limit_backoff_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._sleep = sleep

    async def _get(self, path: str, params: dict[str, Any], *, retry_on_rate_limit: bool = False) -> Any:
        query = {**params, "token": self._api_key}
        attempts = 2 if retry_on_rate_limit else 1
        for attempt in range(attempts):
            response = await self._client.get(f"{self._base_url}{path}", params=query, timeout=self._timeout)
            if response.status_code == 429 and attempt + 1 < attempts:
                logger.warning("Finnhub rate limited on %s; retrying in %.1fs", path, self._backoff)
                await self._sleep(self._backoff)
                continue
            response.raise_for_status()
            payload = response.json()
            if isinstance(payload, dict) and payload.get("error"):
                raise FinnhubError(str(payload["error"]))
            return payload
        raise FinnhubError(f"Exhausted retries for {path}")  # pragma: no cover - loop always returns

    async def quote(self, symbol: str) -> dict[str, Any]:
        return await self._get("/quote", {"symbol": symbol})

    async def candles(
        self,
        symbol: str,
        resolution: str,
        start: datetime,
        end: datetime,
    ) -> dict[str, Any]:
        params = {
            "symbol": symbol,
            "resolution": resolution,
            "from": int(start.timestamp()),
            "to": int(end.timestamp()),
        }
        return await self._get("/stock/candle", params, retry_on_rate_limit=True)

    async def company_news(self, symbol: str, start: date, end: date) -> list[dict[str, Any]]:
        payload = await self._get(
            "/company-news",
            {"symbol": symbol, "from": start.isoformat(), "to": end.isoformat()},
        )
        return payload if isinstance(payload, list) else []

    async def earnings_calendar(self, start: date, end: date) -> dict[str, Any]:
        return await self._get("/calendar/earnings", {"from": start.isoformat(), "to": end.isoformat()})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


_PROVIDER_ERRORS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    FinnhubError,
    ValueError,
    KeyError,
    TypeError,
)


class FinnhubQuoteProvider:
    """QuoteProvider backed by Finnhub; failures degrade to ``None``."""

    def __init__(
        self,
        client: FinnhubClient,
        *,
        resolution: str | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._resolution = resolution or get_settings().candle_resolution
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def get_quote(self, symbol: str) -> LiveQuote | None:
        try:
            data = await self._client.quote(symbol)
        except httpx.HTTPStatusError as exc:
            logger.warning("[Finnhub] %s: HTTP %s", symbol, exc.response.status_code)
            return None
        except _PROVIDER_ERRORS:
            logger.exception("[Finnhub] %s: fetch error", symbol)
            return None
        price = data.get("c") if isinstance(data, dict) else None
        if not price:
            logger.warning("[Finnhub] %s: no price data %s", symbol, data)
            return None
        return LiveQuote(
            price=float(price),
            change=float(data.get("d") or 0.0),
            change_pct=float(data.get("dp") or 0.0),
        )

    async def get_daily_closes(self, symbol: str, days: int) -> list[float] | None:
        end = self._now()
        start = end - timedelta(days=days)
        try:
            data = await self._client.candles(symbol, self._resolution, start, end)
        except httpx.HTTPStatusError as exc:
            logger.warning("[Finnhub] candles %s: HTTP %s", symbol, exc.response.status_code)
            return None
        except _PROVIDER_ERRORS:
            logger.exception("[Finnhub] candles %s: fetch error", symbol)
            return None
        if not isinstance(data, dict) or data.get("s") != "ok":
            return None
        closes = data.get("c")
        if not isinstance(closes, list) or not isinstance(data.get("t"), list):
            return None
        return [float(c) for c in closes]

    async def get_company_news(self, symbol: str, start: date, end: date) -> list[NewsItem] | None:
        try:
            rows = await self._client.company_news(symbol, start, end)
        except _PROVIDER_ERRORS:
            logger.warning("[Finnhub] news %s unavailable", symbol, exc_info=True)
            return None
        items: list[NewsItem] = []
        for row in rows:
            if not isinstance(row, dict) or not row.get("headline"):
                continue
            try:
                published = datetime.fromtimestamp(int(row.get("datetime", 0)), tz=timezone.utc)
            except (TypeError, ValueError, OverflowError):
                continue
            items.append(
                NewsItem(
                    ticker=symbol,
                    headline=str(row["headline"]),
                    source=str(row.get("source") or ""),
                    published_at=published,
                    url=str(row.get("url") or ""),
                )
            )
        return items

    async def get_earnings(self, start: date, end: date) -> list[EarningsEvent] | None:
        try:
            payload = await self._client.earnings_calendar(start, end)
        except _PROVIDER_ERRORS:
            logger.warning("[Finnhub] earnings calendar unavailable", exc_info=True)
            return None
        events: list[EarningsEvent] = []
        for row in payload.get("earningsCalendar") or []:
            try:
                event_date = date.fromisoformat(str(row["date"]))
            except (KeyError, TypeError, ValueError):
                continue
            events.append(
                EarningsEvent(
                    ticker=str(row.get("symbol") or "").upper(),
                    date=event_date,
                    hour=row.get("hour") or None,
                    eps_estimate=_optional_float(row.get("epsEstimate")),
                    revenue_estimate=_optional_float(row.get("revenueEstimate")),
                )
            )
        return events


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = ["FinnhubClient", "FinnhubError", "FinnhubQuoteProvider"]

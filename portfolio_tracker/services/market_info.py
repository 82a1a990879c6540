"""Company news and upcoming earnings for held tickers."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Awaitable, Callable, Iterable

from portfolio_tracker.config.catalog import MANUAL_TICKERS, provider_symbol
from portfolio_tracker.providers.base import EarningsEvent, NewsItem, QuoteProvider

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


async def fetch_news(
    provider: QuoteProvider,
    tickers: Iterable[str],
    *,
    today: date,
    lookback_days: int = 7,
    per_ticker: int = 3,
    request_delay: float = 0.0,
    sleep: Sleep = asyncio.sleep,
) -> list[NewsItem]:
    """Recent headlines, a few per ticker, fetched one ticker at a time; newest first."""

    start = today - timedelta(days=lookback_days)
    items: list[NewsItem] = []
    fetchable = [t for t in dict.fromkeys(tickers) if t not in MANUAL_TICKERS]
    for index, ticker in enumerate(fetchable):
        if index and request_delay:
            await sleep(request_delay)
        rows = await provider.get_company_news(provider_symbol(ticker), start, today)
        if not rows:
            continue
        latest = sorted(rows, key=lambda n: n.published_at, reverse=True)[:per_ticker]
        items.extend(
            NewsItem(ticker=ticker, headline=n.headline, source=n.source, published_at=n.published_at, url=n.url)
            for n in latest
        )
    return sorted(items, key=lambda n: n.published_at, reverse=True)


async def fetch_earnings(
    provider: QuoteProvider,
    tickers: Iterable[str],
    *,
    today: date,
    lookahead_days: int = 30,
) -> list[EarningsEvent]:
    """Calendar entries for held tickers only, soonest first."""

    held = {provider_symbol(t): t for t in tickers}
    events = await provider.get_earnings(today, today + timedelta(days=lookahead_days))
    if not events:
        return []
    matched = [
        EarningsEvent(
            ticker=held[e.ticker],
            date=e.date,
            hour=e.hour,
            eps_estimate=e.eps_estimate,
            revenue_estimate=e.revenue_estimate,
        )
        for e in events
        if e.ticker in held
    ]
    return sorted(matched, key=lambda e: (e.date, e.ticker))


class MarketInfoFeed:
    """Caches the news fetched once per session and the latest earnings list."""

    def __init__(
        self,
        provider: QuoteProvider,
        *,
        lookback_days: int = 7,
        per_ticker: int = 3,
        lookahead_days: int = 30,
        request_delay: float = 0.0,
        sleep: Sleep = asyncio.sleep,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._provider = provider
        self._lookback_days = lookback_days
        self._per_ticker = per_ticker
        self._lookahead_days = lookahead_days
        self._request_delay = request_delay
        self._sleep = sleep
        self._today = today
        self.news: list[NewsItem] = []

    async def load_news(self, tickers: Iterable[str]) -> list[NewsItem]:
        self.news = await fetch_news(
            self._provider,
            tickers,
            today=self._today(),
            lookback_days=self._lookback_days,
            per_ticker=self._per_ticker,
            request_delay=self._request_delay,
            sleep=self._sleep,
        )
        logger.info("Loaded %d news item(s)", len(self.news))
        return list(self.news)

    async def earnings(self, tickers: Iterable[str]) -> list[EarningsEvent]:
        return await fetch_earnings(
            self._provider,
            tickers,
            today=self._today(),
            lookahead_days=self._lookahead_days,
        )


__all__ = ["MarketInfoFeed", "fetch_earnings", "fetch_news"]

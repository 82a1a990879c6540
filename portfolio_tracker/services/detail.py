"""Ticker detail view: a single daily-close series with stale-load protection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable

from portfolio_tracker.config.catalog import price_multiplier, provider_symbol
from portfolio_tracker.providers.base import QuoteProvider
from portfolio_tracker.services.prices import HistoryPoint, synthetic_history

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickerDetail:
    ticker: str
    points: list[HistoryPoint]
    live: bool


class TickerDetailLoader:
    """Loads closes for the ticker currently open in the detail view.

    Every ``open`` or ``close`` bumps a generation counter. A load that finishes
    after the counter moved on belongs to a view that is gone, and its result
    is dropped instead of replacing newer state.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        *,
        days: int = 30,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._provider = provider
        self._days = days
        self._today = today
        self._generation = 0
        self.ticker: str | None = None
        self.detail: TickerDetail | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def open(self, ticker: str) -> int:
        self._generation += 1
        self.ticker = ticker.upper()
        self.detail = None
        return self._generation

    def close(self) -> None:
        self._generation += 1
        self.ticker = None
        self.detail = None

    def is_current(self, token: int) -> bool:
        return token == self._generation

    async def load(self, ticker: str, base_price: float) -> TickerDetail | None:
        """Open ``ticker`` and fetch its series; ``None`` when superseded mid-flight."""

        token = self.open(ticker)
        symbol = self.ticker or ticker
        closes = await self._provider.get_daily_closes(provider_symbol(symbol), self._days)
        if not self.is_current(token):
            logger.debug("Discarding stale detail load for %s", symbol)
            return None

        if closes:
            factor = price_multiplier(symbol)
            today = self._today()
            count = len(closes)
            points = [
                HistoryPoint(date=today - timedelta(days=count - 1 - index), price=round(close * factor, 2))
                for index, close in enumerate(closes)
            ]
            detail = TickerDetail(ticker=symbol, points=points, live=True)
        else:
            points = synthetic_history(symbol, base_price, self._days, today=self._today())
            detail = TickerDetail(ticker=symbol, points=points, live=False)
        self.detail = detail
        return detail


__all__ = ["TickerDetail", "TickerDetailLoader"]

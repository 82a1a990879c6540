"""Provider-neutral market data records and the quote source protocol."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, Sequence


@dataclass(frozen=True)
class LiveQuote:
    """Raw provider quote, before symbol-specific scaling."""

    price: float
    change: float
    change_pct: float


@dataclass(frozen=True)
class NewsItem:
    ticker: str
    headline: str
    source: str
    published_at: datetime
    url: str


@dataclass(frozen=True)
class EarningsEvent:
    ticker: str
    date: date
    hour: str | None = None
    eps_estimate: float | None = None
    revenue_estimate: float | None = None


class QuoteProvider(Protocol):
    """Pluggable market data source.

    Every method returns ``None`` when the provider has no usable data; provider
    failures never escape as exceptions.
    """

    async def get_quote(self, symbol: str) -> LiveQuote | None:
        ...

    async def get_daily_closes(self, symbol: str, days: int) -> list[float] | None:
        ...

    async def get_company_news(self, symbol: str, start: date, end: date) -> list[NewsItem] | None:
        ...

    async def get_earnings(self, start: date, end: date) -> list[EarningsEvent] | None:
        ...


class InMemoryQuoteProvider:
    """Simple quote source for tests and offline sessions."""

    def __init__(
        self,
        quotes: dict[str, LiveQuote] | None = None,
        closes: dict[str, Sequence[float]] | None = None,
        news: dict[str, list[NewsItem]] | None = None,
        earnings: list[EarningsEvent] | None = None,
    ) -> None:
        self.quotes = dict(quotes or {})
        self.closes = {k: list(v) for k, v in (closes or {}).items()}
        self.news = dict(news or {})
        self.earnings = list(earnings or [])
        self.calls: list[tuple[str, str]] = []

    async def get_quote(self, symbol: str) -> LiveQuote | None:
        self.calls.append(("quote", symbol))
        return self.quotes.get(symbol)

    async def get_daily_closes(self, symbol: str, days: int) -> list[float] | None:
        self.calls.append(("closes", symbol))
        series = self.closes.get(symbol)
        return list(series[-days:]) if series else None

    async def get_company_news(self, symbol: str, start: date, end: date) -> list[NewsItem] | None:
        self.calls.append(("news", symbol))
        return self.news.get(symbol)

    async def get_earnings(self, start: date, end: date) -> list[EarningsEvent] | None:
        self.calls.append(("earnings", ""))
        return [e for e in self.earnings if start <= e.date <= end]


__all__ = [
    "EarningsEvent",
    "InMemoryQuoteProvider",
    "LiveQuote",
    "NewsItem",
    "QuoteProvider",
]

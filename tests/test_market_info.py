from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone

from portfolio_tracker.providers.base import EarningsEvent, InMemoryQuoteProvider, NewsItem
from portfolio_tracker.services.detail import TickerDetailLoader
from portfolio_tracker.services.market_info import fetch_earnings, fetch_news

TODAY = date(2024, 6, 3)


def news(ticker: str, headline: str, hour: int) -> NewsItem:
    return NewsItem(
        ticker=ticker,
        headline=headline,
        source="Wire",
        published_at=datetime(2024, 6, 2, hour, tzinfo=timezone.utc),
        url=f"https://news.test/{headline}",
    )


async def test_news_fetched_sequentially_newest_first():
    provider = InMemoryQuoteProvider(
        news={
            "AAPL": [news("AAPL", "a1", 9), news("AAPL", "a2", 15), news("AAPL", "a3", 11), news("AAPL", "a4", 8)],
            "BRK-B": [news("BRK-B", "b1", 12)],
        }
    )
    waits: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        waits.append(seconds)

    items = await fetch_news(
        provider, ["AAPL", "BRK.B", "VTSAX", "NONE"], today=TODAY, per_ticker=3, request_delay=0.5, sleep=fake_sleep
    )

    assert [i.headline for i in items] == ["a2", "b1", "a3", "a1"]
    assert items[1].ticker == "BRK.B"
    assert [symbol for _, symbol in provider.calls] == ["AAPL", "BRK-B", "NONE"]
    assert waits == [0.5, 0.5]


async def test_earnings_filtered_to_held_and_sorted():
    provider = InMemoryQuoteProvider(
        earnings=[
            EarningsEvent("MSFT", date(2024, 6, 20)),
            EarningsEvent("AAPL", date(2024, 6, 10), hour="amc"),
            EarningsEvent("TSLA", date(2024, 6, 5)),
            EarningsEvent("NVDA", date(2024, 9, 1)),
        ]
    )

    events = await fetch_earnings(provider, ["AAPL", "MSFT", "NVDA"], today=TODAY, lookahead_days=30)

    assert [(e.ticker, e.date.day) for e in events] == [("AAPL", 10), ("MSFT", 20)]


async def test_detail_uses_live_closes_with_multiplier():
    provider = InMemoryQuoteProvider(closes={"KXIAY": [120.0, 130.0, 125.0]})
    loader = TickerDetailLoader(provider, today=lambda: TODAY)

    detail = await loader.load("kxiay", 12.0)

    assert detail is not None and detail.live
    assert [p.price for p in detail.points] == [12.0, 13.0, 12.5]
    assert detail.points[-1].date == TODAY


async def test_detail_falls_back_to_synthetic_series():
    loader = TickerDetailLoader(InMemoryQuoteProvider(), days=30, today=lambda: TODAY)

    detail = await loader.load("AAPL", 192.5)

    assert detail is not None and not detail.live
    assert len(detail.points) == 31


async def test_stale_detail_load_is_discarded():
    release = asyncio.Event()

    class SlowProvider(InMemoryQuoteProvider):
        async def get_daily_closes(self, symbol, days):
            if symbol == "AAPL":
                await release.wait()
            return [1.0, 2.0]

    loader = TickerDetailLoader(SlowProvider(), today=lambda: TODAY)
    slow = asyncio.create_task(loader.load("AAPL", 100.0))
    await asyncio.sleep(0)

    newer = await loader.load("MSFT", 100.0)
    release.set()
    stale = await slow

    assert stale is None
    assert newer is not None
    assert loader.detail.ticker == "MSFT"


async def test_closing_view_discards_in_flight_load():
    release = asyncio.Event()

    class SlowProvider(InMemoryQuoteProvider):
        async def get_daily_closes(self, symbol, days):
            await release.wait()
            return [1.0, 2.0]

    loader = TickerDetailLoader(SlowProvider(), today=lambda: TODAY)
    pending = asyncio.create_task(loader.load("AAPL", 100.0))
    await asyncio.sleep(0)

    loader.close()
    release.set()

    assert await pending is None
    assert loader.detail is None

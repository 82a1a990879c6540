from __future__ import annotations

import asyncio
import random
from datetime import date

import pytest

from portfolio_tracker.providers.base import InMemoryQuoteProvider, LiveQuote
from portfolio_tracker.services.positions import Position
from portfolio_tracker.services.prices import (
    DataSource,
    PriceCache,
    PriceQuote,
    PriceSimulator,
    synthetic_history,
)


def position(ticker: str, shares: float = 10, avg_cost: float = 100.0, account: str = "Fidelity", id_: int = 1):
    return Position(id=id_, ticker=ticker, shares=shares, avg_cost=avg_cost, account=account)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


async def test_live_quote_replaces_price():
    provider = InMemoryQuoteProvider({"AAPL": LiveQuote(price=180.0, change=2.0, change_pct=1.12)})
    cache = PriceCache(provider)
    positions = [position("AAPL", avg_cost=150.0)]

    result = await cache.refresh(positions)

    quote = cache.get("AAPL")
    assert quote == PriceQuote(current=180.0, prev=192.5, change=2.0, change_pct=1.12)
    assert result.live == ["AAPL"]
    assert cache.status is DataSource.LIVE


async def test_status_connecting_until_first_cycle():
    cache = PriceCache(InMemoryQuoteProvider())

    assert cache.status is DataSource.CONNECTING
    await cache.refresh([position("AAPL")])
    assert cache.status is DataSource.SIMULATED


@pytest.mark.parametrize("seed", range(25))
async def test_simulated_fallback_stays_near_last_price(seed):
    cache = PriceCache(InMemoryQuoteProvider(), simulator=PriceSimulator(seed=seed), base_prices={"ZZZZ": 100.0})
    positions = [position("ZZZZ")]
    cache.seed(positions)

    await cache.refresh(positions)

    price = cache.price("ZZZZ")
    assert 98.0 <= price <= 102.08
    assert price > 0


async def test_simulated_change_accumulates_against_session_reference():
    cache = PriceCache(InMemoryQuoteProvider(), simulator=PriceSimulator(seed="s"), base_prices={"ZZZZ": 100.0})
    positions = [position("ZZZZ")]
    cache.seed(positions)

    for _ in range(5):
        await cache.refresh(positions)

    quote = cache.get("ZZZZ")
    assert quote.change == pytest.approx(quote.current - 100.0)
    assert quote.change_pct == pytest.approx((quote.current - 100.0) / 100.0 * 100)


async def test_simulator_is_deterministic_per_seed():
    first = PriceSimulator(seed=7)
    second = PriceSimulator(seed=7)

    assert [first.next_price("AAPL", 100.0) for _ in range(5)] == [second.next_price("AAPL", 100.0) for _ in range(5)]


async def test_manual_ticker_priced_at_cost_and_never_fetched():
    provider = InMemoryQuoteProvider({"VTSAX": LiveQuote(price=999.0, change=5.0, change_pct=1.0)})
    cache = PriceCache(provider)
    positions = [position("VTSAX", shares=10, avg_cost=134.51)]

    for _ in range(3):
        await cache.refresh(positions)

    assert cache.get("VTSAX") == PriceQuote.flat(134.51)
    assert provider.calls == []
    assert cache.status is DataSource.CONNECTING


async def test_manual_ticker_uses_blended_cost_across_lots():
    cache = PriceCache(InMemoryQuoteProvider())
    positions = [position("VTSAX", 10, 100.0, id_=1), position("VTSAX", 30, 200.0, "Chase", id_=2)]

    await cache.refresh(positions)

    assert cache.price("VTSAX") == pytest.approx(175.0)


async def test_symbol_remap_and_multiplier_applied():
    provider = InMemoryQuoteProvider(
        {
            "BRK-B": LiveQuote(price=450.0, change=3.0, change_pct=0.67),
            "KXIAY": LiveQuote(price=120.0, change=2.0, change_pct=1.7),
        }
    )
    cache = PriceCache(provider)

    await cache.refresh([position("BRK.B", id_=1), position("KXIAY", id_=2)])

    assert cache.price("BRK.B") == 450.0
    kx = cache.get("KXIAY")
    assert kx.current == pytest.approx(12.0)
    assert kx.change == pytest.approx(0.2)
    assert kx.change_pct == 1.7
    assert ("quote", "BRK-B") in provider.calls


async def test_requests_are_sequential_with_delay_between():
    sleep = RecordingSleep()
    provider = InMemoryQuoteProvider()
    cache = PriceCache(provider, request_delay=0.25, sleep=sleep)

    await cache.refresh([position("AAPL", id_=1), position("MSFT", id_=2), position("AAPL", id_=3), position("NVDA", id_=4)])

    assert [symbol for _, symbol in provider.calls] == ["AAPL", "MSFT", "NVDA"]
    assert sleep.calls == [0.25, 0.25]


async def test_single_ticker_cycle_does_not_sleep():
    sleep = RecordingSleep()
    cache = PriceCache(InMemoryQuoteProvider(), request_delay=0.25, sleep=sleep)

    await cache.refresh([position("AAPL")])

    assert sleep.calls == []


async def test_cycle_results_are_applied_together():
    observed: list[float] = []

    class PeekingProvider(InMemoryQuoteProvider):
        async def get_quote(self, symbol):
            observed.append(cache.price("AAPL"))
            return LiveQuote(price=300.0, change=1.0, change_pct=0.5)

    cache = PriceCache(PeekingProvider())
    positions = [position("AAPL", id_=1), position("MSFT", id_=2)]

    await cache.refresh(positions)

    # While MSFT was being fetched the AAPL result had not been published yet.
    assert observed == [192.5, 192.5]
    assert cache.price("AAPL") == 300.0
    assert cache.price("MSFT") == 300.0


async def test_provider_exception_degrades_to_simulation():
    class BrokenProvider(InMemoryQuoteProvider):
        async def get_quote(self, symbol):
            raise RuntimeError("boom")

    cache = PriceCache(BrokenProvider())
    positions = [position("AAPL")]

    result = await cache.refresh(positions)

    assert result.simulated == ["AAPL"]
    assert cache.price("AAPL") > 0


async def test_unknown_ticker_seeded_in_default_range():
    cache = PriceCache(InMemoryQuoteProvider(), rng=random.Random(3))

    added = cache.seed([position("NEWCO")])

    assert added == ["NEWCO"]
    assert 100.0 <= cache.price("NEWCO") <= 500.0
    assert cache.seed([position("NEWCO")]) == []


async def test_any_live_ticker_marks_cycle_live():
    provider = InMemoryQuoteProvider({"AAPL": LiveQuote(price=180.0, change=0.0, change_pct=0.0)})
    cache = PriceCache(provider)

    result = await cache.refresh([position("AAPL", id_=1), position("ZZZZ", id_=2)])

    assert result.status is DataSource.LIVE
    assert result.simulated == ["ZZZZ"]


def test_synthetic_history_is_deterministic_and_positive():
    today = date(2024, 6, 3)

    first = synthetic_history("AAPL", 192.5, today=today)
    second = synthetic_history("AAPL", 192.5, today=today)

    assert first == second
    assert len(first) == 31
    assert first[-1].date == today
    assert all(p.price > 0 for p in first)
    assert synthetic_history("MSFT", 192.5, today=today) != first


class GatedProvider(InMemoryQuoteProvider):
    """Answers 100 to the first quote request once released, 200 to later ones."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_quote(self, symbol: str) -> LiveQuote | None:
        self.calls.append(("quote", symbol))
        first = len(self.calls) == 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if first:
                await self.release.wait()
            return LiveQuote(price=100.0 if first else 200.0, change=0.0, change_pct=0.0)
        finally:
            self.in_flight -= 1


async def test_overlapping_refreshes_run_one_after_another():
    provider = GatedProvider()
    cache = PriceCache(provider, base_prices={"ZZZZ": 50.0})
    positions = [position("ZZZZ")]

    older = asyncio.create_task(cache.refresh(positions))
    await asyncio.sleep(0)
    newer = asyncio.create_task(cache.refresh(positions))
    await asyncio.sleep(0)

    assert len(provider.calls) == 1
    provider.release.set()
    await older
    await newer

    assert provider.max_in_flight == 1
    assert cache.get("ZZZZ") == PriceQuote(current=200.0, prev=100.0, change=0.0, change_pct=0.0)

from __future__ import annotations

import asyncio
from datetime import date

from portfolio_tracker.config import AppSettings
from portfolio_tracker.providers.base import InMemoryQuoteProvider, LiveQuote
from portfolio_tracker.services.dashboard import PortfolioDashboard
from portfolio_tracker.services.lifecycle import GuardState
from portfolio_tracker.services.positions import PositionDraft
from portfolio_tracker.services.prices import PriceSimulator
from portfolio_tracker.services.storage import ALERTS_KEY, HISTORY_KEY, InMemoryStorage

TODAY = date(2024, 6, 3)


async def no_sleep(seconds: float) -> None:
    return None


class FlakyStorage(InMemoryStorage):
    def __init__(self, failing: set[str]) -> None:
        super().__init__()
        self.failing = set(failing)

    async def write(self, key: str, value: str) -> None:
        if key in self.failing:
            raise OSError("disk full")
        await super().write(key, value)


def build_dashboard(storage: InMemoryStorage, provider: InMemoryQuoteProvider) -> PortfolioDashboard:
    return PortfolioDashboard(
        storage,
        provider,
        AppSettings(quote_request_delay_seconds=0),
        sleep=no_sleep,
        today=lambda: TODAY,
        simulator=PriceSimulator(seed=1),
    )


async def test_storage_failure_in_snapshot_does_not_skip_other_evaluators():
    storage = FlakyStorage(set())
    provider = InMemoryQuoteProvider({"AAPL": LiveQuote(price=210.0, change=0.0, change_pct=0.0)})
    dashboard = build_dashboard(storage, provider)
    await dashboard.load()
    await dashboard.add_position(PositionDraft(ticker="AAPL", shares=1, avg_cost=100.0))
    await dashboard.alerts.create("AAPL", 200.0, "above")

    storage.failing.add(HISTORY_KEY)
    await dashboard.refresh()

    assert dashboard.session.snapshot.state is GuardState.NOT_STARTED
    assert "in_the_green" in dashboard.achievements.unlocked()
    assert dashboard.alerts.alerts[0].triggered

    storage.failing.clear()
    await dashboard.refresh()

    assert HISTORY_KEY in storage.blobs
    assert dashboard.session.snapshot.state is GuardState.COMPLETED


async def test_failing_alert_storage_still_records_snapshot():
    storage = FlakyStorage(set())
    provider = InMemoryQuoteProvider({"AAPL": LiveQuote(price=210.0, change=0.0, change_pct=0.0)})
    dashboard = build_dashboard(storage, provider)
    await dashboard.load()
    await dashboard.add_position(PositionDraft(ticker="AAPL", shares=1, avg_cost=100.0))
    await dashboard.alerts.create("AAPL", 200.0, "above")

    storage.failing.add(ALERTS_KEY)
    await dashboard.refresh()

    assert HISTORY_KEY in storage.blobs
    assert not dashboard.alerts.alerts[0].triggered


async def test_concurrent_refreshes_are_queued():
    release = asyncio.Event()
    active = 0
    peak = 0

    class SlowProvider(InMemoryQuoteProvider):
        async def get_quote(self, symbol: str) -> LiveQuote | None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            try:
                await release.wait()
                return LiveQuote(price=120.0, change=0.0, change_pct=0.0)
            finally:
                active -= 1

    dashboard = build_dashboard(InMemoryStorage(), SlowProvider())
    await dashboard.load()
    await dashboard.add_position(PositionDraft(ticker="AAPL", shares=1, avg_cost=100.0))

    timer = asyncio.create_task(dashboard.refresh())
    manual = asyncio.create_task(dashboard.refresh())
    await asyncio.sleep(0)
    release.set()
    await asyncio.gather(timer, manual)

    assert peak == 1
    assert dashboard.prices.get("AAPL").prev == 120.0

"""Session facade tying the stores, the price cache and the evaluators together."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable

from portfolio_tracker.config import AppSettings, get_settings
from portfolio_tracker.providers.base import EarningsEvent, NewsItem, QuoteProvider
from portfolio_tracker.rules.achievements import AchievementTracker
from portfolio_tracker.services.alerts import (
    AlertBook,
    BannerBoard,
    Clock,
    DesktopNotifier,
    LogDesktopNotifier,
    PriceAlert,
    alerts_repository,
)
from portfolio_tracker.services.analytics import (
    CorrelationMatrix,
    Valuation,
    build_correlation_matrix,
    compute_valuation,
)
from portfolio_tracker.services.detail import TickerDetail, TickerDetailLoader
from portfolio_tracker.services.lifecycle import (
    AllTimeHighTracker,
    HighCheck,
    ObservationResult,
    SessionContext,
    SnapshotLifecycle,
    daily_pl_repository,
    history_repository,
)
from portfolio_tracker.services.market_info import MarketInfoFeed
from portfolio_tracker.services.positions import Position, PositionDraft, PositionStore, positions_repository
from portfolio_tracker.services.preferences import Theme, ThemePreference
from portfolio_tracker.services.prices import PriceCache, PriceSimulator, RefreshResult
from portfolio_tracker.services.report import export_portfolio_pdf
from portfolio_tracker.services.scheduler import RefreshScheduler
from portfolio_tracker.services.storage import Storage

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class UpdateOutcome:
    valuation: Valuation
    observation: ObservationResult
    unlocked: list[str]
    fired: list[PriceAlert]


class PortfolioDashboard:
    """One user session over persisted state and a quote provider."""

    def __init__(
        self,
        storage: Storage,
        provider: QuoteProvider,
        settings: AppSettings | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        today: Callable[[], date] = date.today,
        clock: Clock | None = None,
        simulator: PriceSimulator | None = None,
        rng: random.Random | None = None,
        desktop: DesktopNotifier | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.provider = provider
        self._sleep = sleep
        self._today = today
        self.session = SessionContext()
        self.celebrations: list[HighCheck] = []

        self.positions = PositionStore(positions_repository(storage, seed_demo=self.settings.seed_demo_positions))
        self.prices = PriceCache(
            provider,
            simulator=simulator,
            request_delay=self.settings.quote_request_delay_seconds,
            sleep=sleep,
            rng=rng,
        )
        self.snapshots = SnapshotLifecycle(
            self.session,
            history_repository(storage),
            daily_pl_repository(storage),
            AllTimeHighTracker(storage, on_new_high=self.celebrations.append),
            today=today,
        )
        self.achievements = AchievementTracker(storage)
        self.alerts = AlertBook(
            alerts_repository(storage),
            BannerBoard(self.settings.alert_banner_seconds, clock=clock),
            desktop or LogDesktopNotifier(self.settings.desktop_notifications),
        )
        self.detail = TickerDetailLoader(provider, today=today)
        self.market = MarketInfoFeed(
            provider,
            lookback_days=self.settings.news_lookback_days,
            per_ticker=self.settings.news_items_per_ticker,
            lookahead_days=self.settings.earnings_lookahead_days,
            request_delay=self.settings.news_request_delay_seconds,
            sleep=sleep,
            today=today,
        )
        self.theme = ThemePreference(storage, Theme(self.settings.default_theme))
        self._scheduler: RefreshScheduler | None = None
        self._refresh_lock = asyncio.Lock()

    async def load(self) -> None:
        """Read persisted state and give every held ticker a starting quote."""

        positions = await self.positions.load()
        await self.achievements.load()
        await self.alerts.load()
        self.prices.seed(positions)
        logger.info("Loaded %d position(s), %d alert(s)", len(positions), len(self.alerts.alerts))

    async def refresh(self) -> RefreshResult:
        """One price cycle followed by its evaluators; the timer and manual refreshes queue here."""

        async with self._refresh_lock:
            result = await self.prices.refresh(self.positions.positions)
            await self.after_price_update()
        return result

    async def after_price_update(self) -> UpdateOutcome:
        positions = self.positions.positions
        prices = self.prices.prices()
        valuation = compute_valuation(positions, prices)
        observation = await self.snapshots.observe(valuation.total_value, self.prices.status)
        unlocked: list[str] = []
        fired: list[PriceAlert] = []
        try:
            unlocked = await self.achievements.evaluate(positions, prices, self.prices.status)
        except Exception:  # noqa: BLE001 - retried on the next cycle
            logger.exception("Achievement evaluation failed")
        try:
            fired = await self.alerts.evaluate(prices)
        except Exception:  # noqa: BLE001 - retried on the next cycle
            logger.exception("Price alert evaluation failed")
        return UpdateOutcome(valuation=valuation, observation=observation, unlocked=unlocked, fired=fired)

    def start(self) -> RefreshScheduler:
        if self._scheduler is None:
            self._scheduler = RefreshScheduler(self.refresh, self.settings.refresh_interval_seconds, sleep=self._sleep)
        self._scheduler.start()
        return self._scheduler

    async def stop(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.stop()
        self.detail.close()

    async def add_position(self, draft: PositionDraft) -> Position:
        position = await self.positions.add(draft)
        self.prices.seed(self.positions.positions)
        return position

    async def import_csv(self, text: str) -> list[Position]:
        created = await self.positions.import_csv(text)
        self.prices.seed(self.positions.positions)
        logger.info("Imported %d position(s) from CSV", len(created))
        return created

    async def remove_position(self, position_id: int) -> bool:
        return await self.positions.remove(position_id)

    def valuation(self, account: str = "All") -> Valuation:
        return compute_valuation(self.positions.positions, self.prices.prices(), account)

    async def correlation(self) -> CorrelationMatrix:
        return await build_correlation_matrix(
            self.positions.positions,
            self.prices.prices(),
            self.provider,
            top_n=self.settings.correlation_top_n,
            lookback_days=self.settings.correlation_lookback_days,
            request_delay=self.settings.correlation_request_delay_seconds,
            sleep=self._sleep,
        )

    async def ticker_history(self, ticker: str) -> TickerDetail | None:
        symbol = ticker.upper()
        base = self.prices.price(symbol) or self.prices.base_price(symbol)
        return await self.detail.load(symbol, base)

    async def news(self) -> list[NewsItem]:
        if self.session.news.claim():
            await self.market.load_news(self.positions.tickers())
        return list(self.market.news)

    async def earnings(self) -> list[EarningsEvent]:
        return await self.market.earnings(self.positions.tickers())

    def report_pdf(self) -> bytes:
        return export_portfolio_pdf(
            self.positions.positions,
            self.prices.prices(),
            lines_per_page=self.settings.report_lines_per_page,
        )


__all__ = ["PortfolioDashboard", "UpdateOutcome"]

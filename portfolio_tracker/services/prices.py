"""Price cache and the incremental refresh protocol.

Each refresh cycle asks the quote provider for every non-manual ticker, one
request at a time with a small pause in between. A ticker that comes back
without data keeps moving through a bounded random walk from its last known
price, so a known position never loses its price. Results of a cycle are
swapped into the cache in one assignment.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Iterable, Mapping, Sequence

from portfolio_tracker.config.catalog import BASE_PRICES, MANUAL_TICKERS, price_multiplier, provider_symbol
from portfolio_tracker.providers.base import LiveQuote, QuoteProvider
from portfolio_tracker.services.positions import Position

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

DRIFT_CENTER = 0.48
TICK_SPAN = 0.02
HISTORY_SPAN = 0.04
UNKNOWN_BASE_MIN = 100.0
UNKNOWN_BASE_SPAN = 400.0


class DataSource(str, Enum):
    CONNECTING = "connecting"
    LIVE = "live"
    SIMULATED = "simulated"


@dataclass(frozen=True)
class PriceQuote:
    current: float
    prev: float
    change: float = 0.0
    change_pct: float = 0.0

    @classmethod
    def flat(cls, price: float) -> "PriceQuote":
        return cls(current=price, prev=price, change=0.0, change_pct=0.0)


@dataclass(frozen=True)
class HistoryPoint:
    date: date
    price: float


@dataclass
class RefreshResult:
    status: DataSource
    live: list[str] = field(default_factory=list)
    simulated: list[str] = field(default_factory=list)
    manual: list[str] = field(default_factory=list)
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def ticker_rng(ticker: str, seed: int | str | None = None) -> random.Random:
    """Deterministic generator keyed by ticker (and an optional session seed)."""

    return random.Random(f"{seed}:{ticker}" if seed is not None else ticker)


class PriceSimulator:
    """Bounded multiplicative random walk used when live data is missing.

    Each step multiplies by ``1 + (u - 0.48) * 0.02`` for ``u`` uniform in
    ``[0, 1)``: roughly +/-1% with a slight downward lean.
    """

    def __init__(self, seed: int | str | None = None) -> None:
        self._seed = seed
        self._streams: dict[str, random.Random] = {}

    def _stream(self, ticker: str) -> random.Random:
        if ticker not in self._streams:
            self._streams[ticker] = ticker_rng(ticker, self._seed)
        return self._streams[ticker]

    def next_price(self, ticker: str, price: float) -> float:
        step = (self._stream(ticker).random() - DRIFT_CENTER) * TICK_SPAN
        return max(round(price * (1 + step), 2), 0.01)

    def perturb(self, ticker: str, quote: PriceQuote) -> PriceQuote:
        old = quote.current
        new = self.next_price(ticker, old)
        reference = old - quote.change
        change = quote.change + (new - old)
        change_pct = (new - reference) / reference * 100 if reference else 0.0
        return PriceQuote(current=new, prev=old, change=change, change_pct=change_pct)


def synthetic_history(
    ticker: str,
    base_price: float,
    days: int = 30,
    *,
    today: date | None = None,
    seed: int | str | None = None,
) -> list[HistoryPoint]:
    """Deterministic daily random walk ending today, for sparklines and fallbacks."""

    rng = ticker_rng(ticker, seed)
    today = today or date.today()
    price = base_price * (0.85 + rng.random() * 0.15)
    points: list[HistoryPoint] = []
    for offset in range(days, -1, -1):
        price = price * (1 + (rng.random() - DRIFT_CENTER) * HISTORY_SPAN)
        points.append(HistoryPoint(date=today - timedelta(days=offset), price=round(price, 2)))
    return points


def blended_cost(positions: Iterable[Position], ticker: str) -> float:
    lots = [p for p in positions if p.ticker == ticker]
    shares = sum(p.shares for p in lots)
    if shares:
        return sum(p.cost_basis for p in lots) / shares
    return lots[0].avg_cost if lots else 0.0


class PriceCache:
    """Per-ticker quotes plus the data-source status of the last cycle."""

    def __init__(
        self,
        provider: QuoteProvider,
        *,
        simulator: PriceSimulator | None = None,
        request_delay: float = 0.0,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
        manual_tickers: frozenset[str] = MANUAL_TICKERS,
        base_prices: Mapping[str, float] = BASE_PRICES,
    ) -> None:
        self._provider = provider
        self._simulator = simulator or PriceSimulator()
        self._request_delay = request_delay
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._manual = manual_tickers
        self._base_prices = base_prices
        self._quotes: dict[str, PriceQuote] = {}
        self.status = DataSource.CONNECTING
        self.last_result: RefreshResult | None = None
        self._cycle_lock = asyncio.Lock()

    @property
    def quotes(self) -> Mapping[str, PriceQuote]:
        return dict(self._quotes)

    def get(self, ticker: str) -> PriceQuote | None:
        return self._quotes.get(ticker)

    def price(self, ticker: str) -> float:
        quote = self._quotes.get(ticker)
        return quote.current if quote else 0.0

    def prices(self) -> dict[str, float]:
        return {ticker: quote.current for ticker, quote in self._quotes.items()}

    def is_manual(self, ticker: str) -> bool:
        return ticker in self._manual

    def base_price(self, ticker: str) -> float:
        if ticker in self._base_prices:
            return self._base_prices[ticker]
        return round(UNKNOWN_BASE_MIN + self._rng.random() * UNKNOWN_BASE_SPAN, 2)

    def seed(self, positions: Sequence[Position]) -> list[str]:
        """Give every ticker without a quote its starting price; return those tickers."""

        added: list[str] = []
        seeded = dict(self._quotes)
        for ticker in dict.fromkeys(p.ticker for p in positions):
            if ticker in seeded:
                continue
            if ticker in self._manual:
                seeded[ticker] = PriceQuote.flat(blended_cost(positions, ticker))
            else:
                seeded[ticker] = PriceQuote.flat(self.base_price(ticker))
            added.append(ticker)
        if added:
            self._quotes = seeded
            logger.debug("Seeded starting prices for %s", ", ".join(added))
        return added

    async def _fetch(self, ticker: str) -> LiveQuote | None:
        try:
            return await self._provider.get_quote(provider_symbol(ticker))
        except Exception:  # noqa: BLE001 - provider faults degrade to simulation
            logger.exception("Quote provider raised for %s", ticker)
            return None

    async def refresh(self, positions: Sequence[Position]) -> RefreshResult:
        """Run one refresh cycle over the distinct tickers in ``positions``.

        Cycles never overlap: a cycle requested while another is in flight
        starts once that one has swapped its quotes in.
        """

        async with self._cycle_lock:
            return await self._run_cycle(positions)

    async def _run_cycle(self, positions: Sequence[Position]) -> RefreshResult:
        self.seed(positions)
        tickers = list(dict.fromkeys(p.ticker for p in positions))
        fetchable = [t for t in tickers if t not in self._manual]

        fetched: dict[str, LiveQuote | None] = {}
        for index, ticker in enumerate(fetchable):
            if index and self._request_delay:
                await self._sleep(self._request_delay)
            fetched[ticker] = await self._fetch(ticker)

        working = dict(self._quotes)
        result = RefreshResult(status=self.status)
        for ticker in fetchable:
            live = fetched[ticker]
            previous = working.get(ticker)
            if live is not None:
                factor = price_multiplier(ticker)
                current = live.price * factor
                working[ticker] = PriceQuote(
                    current=current,
                    prev=previous.current if previous else current,
                    change=live.change * factor,
                    change_pct=live.change_pct,
                )
                result.live.append(ticker)
            elif previous is not None:
                working[ticker] = self._simulator.perturb(ticker, previous)
                result.simulated.append(ticker)
        for ticker in tickers:
            if ticker in self._manual:
                working[ticker] = PriceQuote.flat(blended_cost(positions, ticker))
                result.manual.append(ticker)

        self._quotes = working
        if fetchable:
            self.status = DataSource.LIVE if result.live else DataSource.SIMULATED
        result.status = self.status
        self.last_result = result
        logger.info(
            "Refresh cycle: %d live, %d simulated, %d manual (%s)",
            len(result.live),
            len(result.simulated),
            len(result.manual),
            self.status.value,
        )
        return result


__all__ = [
    "DataSource",
    "HistoryPoint",
    "PriceCache",
    "PriceQuote",
    "PriceSimulator",
    "RefreshResult",
    "blended_cost",
    "synthetic_history",
    "ticker_rng",
]

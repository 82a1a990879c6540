"""Derived portfolio views: valuation, breakdowns, movers, what-if and correlation.

Everything here except :func:`build_correlation_matrix` is a pure function of
positions and a ticker-to-price mapping. A ticker missing from the mapping is
priced at 0.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from portfolio_tracker.config.catalog import ACCOUNTS, MANUAL_TICKERS, provider_symbol, sector_for
from portfolio_tracker.providers.base import QuoteProvider
from portfolio_tracker.services.positions import Position

logger = logging.getLogger(__name__)

ALL_ACCOUNTS = "All"
MOVERS_LIMIT = 3

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Valuation:
    total_value: float
    total_cost: float
    total_pl: float
    total_pl_pct: float


@dataclass(frozen=True)
class Slice:
    name: str
    value: float


@dataclass(frozen=True)
class PositionRow:
    id: int
    ticker: str
    account: str
    shares: float
    avg_cost: float
    price: float
    value: float
    pl: float
    pl_pct: float


@dataclass(frozen=True)
class TickerPerformance:
    ticker: str
    shares: float
    value: float
    cost: float
    pl: float
    pl_pct: float


@dataclass(frozen=True)
class Movers:
    gainers: list[TickerPerformance]
    losers: list[TickerPerformance]


@dataclass(frozen=True)
class WhatIfResult:
    ticker: str
    shares: float
    price: float
    before: Valuation
    after: Valuation

    @property
    def value_delta(self) -> float:
        return self.after.total_value - self.before.total_value

    @property
    def pl_delta(self) -> float:
        return self.after.total_pl - self.before.total_pl


@dataclass(frozen=True)
class CorrelationMatrix:
    tickers: list[str]
    values: list[list[float]]

    def get(self, left: str, right: str) -> float:
        return self.values[self.tickers.index(left)][self.tickers.index(right)]


def pct(part: float, whole: float) -> float:
    """``part / whole * 100``, or 0 when ``whole`` is 0."""

    if not whole:
        return 0.0
    return part / whole * 100


def filter_account(positions: Iterable[Position], account: str = ALL_ACCOUNTS) -> list[Position]:
    if account == ALL_ACCOUNTS:
        return list(positions)
    return [p for p in positions if p.account == account]


def _valuation(value: float, cost: float) -> Valuation:
    pl = value - cost
    return Valuation(total_value=value, total_cost=cost, total_pl=pl, total_pl_pct=pct(pl, cost))


def compute_valuation(
    positions: Iterable[Position],
    prices: Mapping[str, float],
    account: str = ALL_ACCOUNTS,
) -> Valuation:
    scoped = filter_account(positions, account)
    value = sum(p.shares * prices.get(p.ticker, 0.0) for p in scoped)
    cost = sum(p.cost_basis for p in scoped)
    return _valuation(value, cost)


def position_rows(
    positions: Iterable[Position],
    prices: Mapping[str, float],
    account: str = ALL_ACCOUNTS,
) -> list[PositionRow]:
    rows: list[PositionRow] = []
    for p in filter_account(positions, account):
        price = prices.get(p.ticker, 0.0)
        value = p.shares * price
        pl = value - p.cost_basis
        rows.append(
            PositionRow(
                id=p.id,
                ticker=p.ticker,
                account=p.account,
                shares=p.shares,
                avg_cost=p.avg_cost,
                price=price,
                value=value,
                pl=pl,
                pl_pct=pct(pl, p.cost_basis),
            )
        )
    return rows


def account_breakdown(positions: Iterable[Position], prices: Mapping[str, float]) -> list[Slice]:
    """Value per account in the fixed account order; empty accounts are left out."""

    totals = dict.fromkeys(ACCOUNTS, 0.0)
    for p in positions:
        if p.account in totals:
            totals[p.account] += p.shares * prices.get(p.ticker, 0.0)
    return [Slice(name=name, value=round(value, 2)) for name, value in totals.items() if value > 0]


def sector_breakdown(
    positions: Iterable[Position],
    prices: Mapping[str, float],
    account: str = ALL_ACCOUNTS,
) -> list[Slice]:
    totals: dict[str, float] = {}
    for p in filter_account(positions, account):
        sector = sector_for(p.ticker)
        totals[sector] = totals.get(sector, 0.0) + p.shares * prices.get(p.ticker, 0.0)
    slices = [Slice(name=name, value=value) for name, value in totals.items() if value > 0]
    return sorted(slices, key=lambda s: s.value, reverse=True)


def ticker_allocation(
    positions: Iterable[Position],
    prices: Mapping[str, float],
    account: str = ALL_ACCOUNTS,
) -> list[Slice]:
    totals: dict[str, float] = {}
    for p in filter_account(positions, account):
        totals[p.ticker] = totals.get(p.ticker, 0.0) + p.shares * prices.get(p.ticker, 0.0)
    return [Slice(name=name, value=round(value, 2)) for name, value in totals.items() if round(value, 2) > 0]


def ticker_performance(positions: Iterable[Position], prices: Mapping[str, float]) -> list[TickerPerformance]:
    """Blend every lot of each ticker into one row; unpriced tickers are skipped."""

    shares: dict[str, float] = {}
    costs: dict[str, float] = {}
    for p in positions:
        shares[p.ticker] = shares.get(p.ticker, 0.0) + p.shares
        costs[p.ticker] = costs.get(p.ticker, 0.0) + p.cost_basis
    rows: list[TickerPerformance] = []
    for ticker, held in shares.items():
        price = prices.get(ticker, 0.0)
        if price <= 0:
            continue
        value = held * price
        pl = value - costs[ticker]
        rows.append(
            TickerPerformance(
                ticker=ticker,
                shares=held,
                value=value,
                cost=costs[ticker],
                pl=pl,
                pl_pct=pct(pl, costs[ticker]),
            )
        )
    return rows


def gainers_and_losers(
    positions: Iterable[Position],
    prices: Mapping[str, float],
    limit: int = MOVERS_LIMIT,
) -> Movers:
    """Top gainers (best first) and losers (most negative last) across all accounts."""

    rows = ticker_performance(positions, prices)
    gainers = sorted((r for r in rows if r.pl_pct > 0), key=lambda r: r.pl_pct, reverse=True)[:limit]
    losers = sorted((r for r in rows if r.pl_pct < 0), key=lambda r: r.pl_pct)[:limit]
    losers.reverse()
    return Movers(gainers=gainers, losers=losers)


def _valid_amount(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def what_if(
    positions: Sequence[Position],
    prices: Mapping[str, float],
    ticker: str | None,
    shares: float | None,
    price: float | None = None,
) -> WhatIfResult | None:
    """Portfolio totals after a hypothetical buy; ``None`` for incomplete input.

    The trade costs ``shares * price``. It is valued at the ticker's current
    price when one is known, otherwise at the trade price.
    """

    if not ticker or not ticker.strip() or not _valid_amount(shares):
        return None
    symbol = ticker.strip().upper()
    market = prices.get(symbol, 0.0)
    trade_price = price if price is not None else (market or None)
    if not _valid_amount(trade_price):
        return None
    quantity = float(shares)  # type: ignore[arg-type]
    cost_price = float(trade_price)  # type: ignore[arg-type]

    before = compute_valuation(positions, prices)
    trade_value = quantity * (market if market > 0 else cost_price)
    after = _valuation(before.total_value + trade_value, before.total_cost + quantity * cost_price)
    return WhatIfResult(ticker=symbol, shares=quantity, price=cost_price, before=before, after=after)


def _returns(closes: Sequence[float]) -> pd.Series:
    series = pd.Series(list(closes), dtype="float64")
    returns = series.pct_change().iloc[1:]
    return returns.replace([np.inf, -np.inf], np.nan).reset_index(drop=True)


def _pearson(left: pd.Series, right: pd.Series) -> float:
    length = min(len(left), len(right))
    if length < 2:
        return 0.0
    value = left.iloc[:length].corr(right.iloc[:length])
    if value is None or not math.isfinite(value):
        return 0.0
    return max(-1.0, min(1.0, float(value)))


def correlation_matrix(closes_by_ticker: Mapping[str, Sequence[float]]) -> CorrelationMatrix:
    """Pearson correlation of day-over-day returns for every ticker pair.

    Tickers with fewer than two closes are dropped. Series of different lengths
    are compared over their common leading prefix.
    """

    returns = {t: _returns(c) for t, c in closes_by_ticker.items() if c is not None and len(c) >= 2}
    tickers = list(returns)
    size = len(tickers)
    values = [[1.0 if i == j else 0.0 for j in range(size)] for i in range(size)]
    for i in range(size):
        for j in range(i + 1, size):
            coefficient = _pearson(returns[tickers[i]], returns[tickers[j]])
            values[i][j] = values[j][i] = coefficient
    return CorrelationMatrix(tickers=tickers, values=values)


def top_tickers_by_value(
    positions: Iterable[Position],
    prices: Mapping[str, float],
    limit: int,
) -> list[str]:
    rows = ticker_performance(positions, prices)
    ranked = sorted(rows, key=lambda r: r.value, reverse=True)
    return [r.ticker for r in ranked if r.ticker not in MANUAL_TICKERS][:limit]


async def build_correlation_matrix(
    positions: Sequence[Position],
    prices: Mapping[str, float],
    provider: QuoteProvider,
    *,
    top_n: int = 10,
    lookback_days: int = 35,
    request_delay: float = 0.0,
    sleep: Sleep = asyncio.sleep,
) -> CorrelationMatrix:
    """Fetch closes for the largest holdings one at a time, then correlate them."""

    tickers = top_tickers_by_value(positions, prices, top_n)
    closes: dict[str, list[float]] = {}
    for index, ticker in enumerate(tickers):
        if index and request_delay:
            await sleep(request_delay)
        series = await provider.get_daily_closes(provider_symbol(ticker), lookback_days)
        if series:
            closes[ticker] = series
        else:
            logger.info("No daily history for %s; leaving it out of the correlation matrix", ticker)
    return correlation_matrix(closes)


__all__ = [
    "ALL_ACCOUNTS",
    "CorrelationMatrix",
    "Movers",
    "PositionRow",
    "Slice",
    "TickerPerformance",
    "Valuation",
    "WhatIfResult",
    "account_breakdown",
    "build_correlation_matrix",
    "compute_valuation",
    "correlation_matrix",
    "filter_account",
    "gainers_and_losers",
    "pct",
    "position_rows",
    "sector_breakdown",
    "ticker_allocation",
    "ticker_performance",
    "top_tickers_by_value",
    "what_if",
]

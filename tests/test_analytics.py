from __future__ import annotations

import math
import random

import pytest

from portfolio_tracker.providers.base import InMemoryQuoteProvider
from portfolio_tracker.services.analytics import (
    account_breakdown,
    build_correlation_matrix,
    compute_valuation,
    correlation_matrix,
    gainers_and_losers,
    position_rows,
    sector_breakdown,
    ticker_allocation,
    what_if,
)
from portfolio_tracker.services.positions import Position


def pos(id_: int, ticker: str, shares: float, avg_cost: float, account: str = "Fidelity") -> Position:
    return Position(id=id_, ticker=ticker, shares=shares, avg_cost=avg_cost, account=account)


def sample_portfolio() -> tuple[list[Position], dict[str, float]]:
    positions = [
        pos(1, "AAPL", 10, 150.0),
        pos(2, "AAPL", 10, 250.0, "Chase"),
        pos(3, "MSFT", 5, 380.0, "Chase"),
        pos(4, "NVDA", 4, 100.0, "IBKR"),
        pos(5, "RKLB", 100, 40.0, "Chase"),
        pos(6, "ZZZZ", 3, 10.0, "IBKR"),
    ]
    prices = {"AAPL": 180.0, "MSFT": 400.0, "NVDA": 500.0, "RKLB": 20.0, "ZZZZ": 0.0}
    return positions, prices


def test_single_position_end_to_end_numbers():
    valuation = compute_valuation([pos(1, "AAPL", 10, 150.0)], {"AAPL": 180.0})

    assert valuation.total_value == pytest.approx(1800.0)
    assert valuation.total_cost == pytest.approx(1500.0)
    assert valuation.total_pl == pytest.approx(300.0)
    assert valuation.total_pl_pct == pytest.approx(20.0)


def test_valuation_identity_on_random_portfolios():
    rng = random.Random(11)
    tickers = ["AAPL", "MSFT", "NVDA", "TSLA", "SPY"]
    for _ in range(50):
        positions = [
            pos(i, rng.choice(tickers), rng.uniform(0, 100), rng.uniform(0, 500), rng.choice(["Fidelity", "Chase"]))
            for i in range(rng.randint(0, 8))
        ]
        prices = {t: rng.uniform(0, 600) for t in tickers}

        valuation = compute_valuation(positions, prices)

        assert valuation.total_value == pytest.approx(sum(p.shares * prices[p.ticker] for p in positions))
        cost = sum(p.shares * p.avg_cost for p in positions)
        assert valuation.total_pl == pytest.approx(valuation.total_value - cost)


def test_zero_cost_basis_reports_zero_percent():
    valuation = compute_valuation([pos(1, "GIFT", 10, 0.0)], {"GIFT": 50.0})

    assert valuation.total_pl_pct == 0.0
    assert not math.isnan(valuation.total_pl_pct)
    assert compute_valuation([], {}).total_pl_pct == 0.0


def test_account_filter_limits_valuation():
    positions, prices = sample_portfolio()

    chase = compute_valuation(positions, prices, "Chase")

    assert chase.total_value == pytest.approx(10 * 180 + 5 * 400 + 100 * 20)


def test_account_breakdown_excludes_empty_accounts():
    positions, prices = sample_portfolio()

    slices = account_breakdown([p for p in positions if p.account != "IBKR"], prices)

    assert [s.name for s in slices] == ["Fidelity", "Chase"]
    assert slices[0].value == 1800.0


def test_sector_breakdown_sorted_with_other_bucket():
    positions = [pos(1, "AAPL", 1, 1), pos(2, "UNLISTED", 10, 1), pos(3, "SPY", 1, 1)]
    prices = {"AAPL": 100.0, "UNLISTED": 50.0, "SPY": 0.0}

    slices = sector_breakdown(positions, prices)

    assert [(s.name, s.value) for s in slices] == [("Other", 500.0), ("Technology", 100.0)]


def test_ticker_allocation_rounds_and_skips_zero():
    positions, prices = sample_portfolio()

    slices = {s.name: s.value for s in ticker_allocation(positions, prices)}

    assert slices["AAPL"] == 3600.0
    assert "ZZZZ" not in slices


def test_position_rows_keep_unpriced_positions():
    positions, prices = sample_portfolio()

    rows = position_rows(positions, prices)

    assert len(rows) == len(positions)
    zzzz = next(r for r in rows if r.ticker == "ZZZZ")
    assert zzzz.value == 0.0
    assert zzzz.pl_pct == pytest.approx(-100.0)


def test_gainers_and_losers_blend_lots_and_skip_unpriced():
    positions, prices = sample_portfolio()

    movers = gainers_and_losers(positions, prices)

    # AAPL blended cost is 200, so 180 is a 10% loss even though one lot is up.
    assert [r.ticker for r in movers.gainers] == ["NVDA", "MSFT"]
    assert [r.ticker for r in movers.losers] == ["AAPL", "RKLB"]
    assert all(r.ticker != "ZZZZ" for r in movers.gainers + movers.losers)


def test_movers_limited_to_three():
    positions = [pos(i, f"T{i}", 1, 100.0) for i in range(8)]
    prices = {f"T{i}": 100.0 + (i - 4) * 10 for i in range(8)}

    movers = gainers_and_losers(positions, prices)

    assert [r.ticker for r in movers.gainers] == ["T7", "T6", "T5"]
    assert [r.ticker for r in movers.losers] == ["T2", "T1", "T0"]


def test_what_if_adds_trade_without_touching_positions():
    positions = [pos(1, "AAPL", 10, 150.0)]
    prices = {"AAPL": 180.0}

    result = what_if(positions, prices, "msft", 2, 400.0)

    assert result is not None
    assert result.after.total_cost == pytest.approx(1500.0 + 800.0)
    assert result.after.total_value == pytest.approx(1800.0 + 800.0)
    assert result.pl_delta == pytest.approx(0.0)
    assert positions == [pos(1, "AAPL", 10, 150.0)]


def test_what_if_values_trade_at_current_price():
    result = what_if([], {"AAPL": 180.0}, "AAPL", 10, 150.0)

    assert result.after.total_value == pytest.approx(1800.0)
    assert result.after.total_pl == pytest.approx(300.0)


@pytest.mark.parametrize(
    "ticker,shares,price",
    [(None, 1, 1), ("", 1, 1), ("AAPL", None, 1), ("AAPL", 0, 1), ("AAPL", float("nan"), 1), ("NEW", 1, None)],
)
def test_what_if_incomplete_input_returns_none(ticker, shares, price):
    assert what_if([], {}, ticker, shares, price) is None


def test_correlation_matrix_properties():
    rng = random.Random(5)
    closes = {t: [100 + rng.uniform(-5, 5) for _ in range(25)] for t in ["A", "B", "C", "D"]}
    closes["E"] = [100 + rng.uniform(-5, 5) for _ in range(12)]

    matrix = correlation_matrix(closes)

    size = len(matrix.tickers)
    assert size == 5
    for i in range(size):
        assert matrix.values[i][i] == 1.0
        for j in range(size):
            assert matrix.values[i][j] == matrix.values[j][i]
            assert -1.0 <= matrix.values[i][j] <= 1.0


def test_identical_and_inverse_series_correlate_fully():
    base = [100.0, 102.0, 101.0, 105.0, 103.0, 108.0]
    inverse = [100.0]
    for previous, current in zip(base, base[1:]):
        inverse.append(inverse[-1] * (1 - (current - previous) / previous))

    matrix = correlation_matrix({"A": base, "B": list(base), "C": inverse})

    assert matrix.get("A", "B") == pytest.approx(1.0)
    assert matrix.get("A", "C") == pytest.approx(-1.0)


def test_flat_series_correlation_is_zero():
    matrix = correlation_matrix({"A": [1.0, 2.0, 3.0, 5.0], "FLAT": [10.0, 10.0, 10.0, 10.0]})

    assert matrix.get("A", "FLAT") == 0.0


async def test_build_correlation_drops_tickers_without_history():
    positions = [
        pos(1, "AAPL", 10, 1),
        pos(2, "MSFT", 10, 1),
        pos(3, "NOHIST", 10, 1),
        pos(4, "VTSAX", 10, 1),
        pos(5, "TINY", 1, 1),
    ]
    prices = {"AAPL": 180.0, "MSFT": 400.0, "NOHIST": 50.0, "VTSAX": 130.0, "TINY": 1.0}
    provider = InMemoryQuoteProvider(
        closes={"AAPL": [1, 2, 3, 4, 5], "MSFT": [5, 4, 6, 3, 7], "TINY": [1, 2, 3, 4]}
    )
    waits: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        waits.append(seconds)

    matrix = await build_correlation_matrix(
        positions, prices, provider, top_n=3, lookback_days=35, request_delay=1.1, sleep=fake_sleep
    )

    assert matrix.tickers == ["MSFT", "AAPL"]
    assert [symbol for _, symbol in provider.calls] == ["MSFT", "AAPL", "NOHIST"]
    assert waits == [1.1, 1.1]

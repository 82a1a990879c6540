from __future__ import annotations

from datetime import datetime

import pytest

from portfolio_tracker.services.positions import Position
from portfolio_tracker.services.report import (
    ReportLine,
    build_report_lines,
    export_portfolio_pdf,
    format_money,
    format_pct,
    paginate,
)


def sample_positions() -> list[Position]:
    return [
        Position(id=i, ticker=t, shares=10, avg_cost=100.0, account="Chase")
        for i, t in enumerate(["AAPL", "MSFT", "NVDA", "RKLB", "VTSAX"], start=1)
    ]


PRICES = {"AAPL": 120.0, "MSFT": 90.0, "NVDA": 250.0, "RKLB": 40.0, "VTSAX": 100.0}


@pytest.mark.parametrize(
    "value,expected",
    [(1234.56, "$1,234.56"), (0, "$0.00"), (-1500.5, "-$1,500.50"), (float("nan"), "$0.00"), (None, "$0.00")],
)
def test_format_money(value, expected):
    assert format_money(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [(1.234, "+1.23%"), (0.0, "+0.00%"), (-4.5, "-4.50%"), (float("inf"), "0.00%"), (None, "0.00%")],
)
def test_format_pct(value, expected):
    assert format_pct(value) == expected


def test_report_lines_cover_every_section():
    lines = build_report_lines(sample_positions(), PRICES, generated_at=datetime(2024, 6, 3, 9, 0))
    texts = [line.text for line in lines]

    assert "Total Value: $6,000.00" in texts
    assert "Total P&L: $1,000.00 (+20.00%)" in texts
    headings = [line.text for line in lines if line.style == "heading"]
    assert headings == ["Summary", "Top Gainers", "Top Losers", "Sector Breakdown", "Positions"]
    assert sum(1 for line in lines if line.style == "table") == 1 + len(sample_positions())
    assert "NVDA  +150.00%" in texts
    assert any(text.startswith("Technology: $2,100.00 (35.0%)") for text in texts)


def test_paginate_starts_new_page_when_full():
    lines = [ReportLine(str(i)) for i in range(25)]

    pages = paginate(lines, 10)

    assert [len(page) for page in pages] == [10, 10, 5]
    assert pages[2][0].text == "20"


def test_paginate_rejects_non_positive_page_size():
    with pytest.raises(ValueError):
        paginate([ReportLine("x")], 0)


def test_export_produces_pdf_bytes():
    positions = sample_positions() * 20

    content = export_portfolio_pdf(positions, PRICES, lines_per_page=20)

    assert content.startswith(b"%PDF")
    assert len(paginate(build_report_lines(positions, PRICES), 20)) > 1

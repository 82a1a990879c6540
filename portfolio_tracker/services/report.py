"""Portfolio PDF export rendered with matplotlib's PDF backend."""

from __future__ import annotations

import io
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Sequence

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from portfolio_tracker.services.analytics import (
    compute_valuation,
    gainers_and_losers,
    pct,
    position_rows,
    sector_breakdown,
)
from portfolio_tracker.services.positions import Position

PAGE_SIZE_INCHES = (8.5, 11.0)
TOP_MARGIN = 0.95
BOTTOM_MARGIN = 0.05
LEFT_MARGIN = 0.07

FONT_SIZES = {"title": 16, "heading": 12, "body": 9, "table": 8}


def format_money(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return "$0.00"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_pct(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return "0.00%"
    return f"{'+' if value >= 0 else ''}{value:.2f}%"


@dataclass(frozen=True)
class ReportLine:
    text: str
    style: str = "body"


POSITION_HEADER = f"{'Ticker':<8}{'Account':<10}{'Shares':>10}{'Avg Cost':>13}{'Price':>13}{'Value':>15}{'P&L%':>10}"


def build_report_lines(
    positions: Sequence[Position],
    prices: Mapping[str, float],
    *,
    generated_at: datetime | None = None,
) -> list[ReportLine]:
    generated_at = generated_at or datetime.now()
    valuation = compute_valuation(positions, prices)
    movers = gainers_and_losers(positions, prices)

    lines = [
        ReportLine("Portfolio Report", "title"),
        ReportLine(f"Generated {generated_at:%Y-%m-%d %H:%M}"),
        ReportLine(""),
        ReportLine("Summary", "heading"),
        ReportLine(f"Total Value: {format_money(valuation.total_value)}"),
        ReportLine(f"Total Cost: {format_money(valuation.total_cost)}"),
        ReportLine(f"Total P&L: {format_money(valuation.total_pl)} ({format_pct(valuation.total_pl_pct)})"),
        ReportLine(""),
        ReportLine("Top Gainers", "heading"),
    ]
    lines.extend(ReportLine(f"{row.ticker}  {format_pct(row.pl_pct)}") for row in movers.gainers)
    if not movers.gainers:
        lines.append(ReportLine("None"))
    lines.append(ReportLine("Top Losers", "heading"))
    lines.extend(ReportLine(f"{row.ticker}  {format_pct(row.pl_pct)}") for row in movers.losers)
    if not movers.losers:
        lines.append(ReportLine("None"))

    lines.append(ReportLine(""))
    lines.append(ReportLine("Sector Breakdown", "heading"))
    for sector in sector_breakdown(positions, prices):
        share = pct(sector.value, valuation.total_value)
        lines.append(ReportLine(f"{sector.name}: {format_money(sector.value)} ({share:.1f}%)"))

    lines.append(ReportLine(""))
    lines.append(ReportLine("Positions", "heading"))
    lines.append(ReportLine(POSITION_HEADER, "table"))
    for row in position_rows(positions, prices):
        lines.append(
            ReportLine(
                f"{row.ticker:<8}{row.account:<10}{row.shares:>10,.2f}{format_money(row.avg_cost):>13}"
                f"{format_money(row.price):>13}{format_money(row.value):>15}{format_pct(row.pl_pct):>10}",
                "table",
            )
        )
    return lines


def paginate(lines: Sequence[ReportLine], lines_per_page: int) -> list[list[ReportLine]]:
    """Start a new page whenever the current one holds ``lines_per_page`` lines."""

    if lines_per_page <= 0:
        raise ValueError("lines_per_page must be positive")
    pages: list[list[ReportLine]] = []
    for line in lines:
        if not pages or len(pages[-1]) >= lines_per_page:
            pages.append([])
        pages[-1].append(line)
    return pages


def render_pdf(pages: Sequence[Sequence[ReportLine]], lines_per_page: int) -> bytes:
    buffer = io.BytesIO()
    step = (TOP_MARGIN - BOTTOM_MARGIN) / lines_per_page
    with PdfPages(buffer) as pdf:
        for number, page in enumerate(pages or [[]], start=1):
            figure = Figure(figsize=PAGE_SIZE_INCHES)
            for index, line in enumerate(page):
                figure.text(
                    LEFT_MARGIN,
                    TOP_MARGIN - index * step,
                    line.text,
                    fontsize=FONT_SIZES.get(line.style, FONT_SIZES["body"]),
                    fontweight="bold" if line.style in ("title", "heading") else "normal",
                    family="monospace" if line.style == "table" else "sans-serif",
                    va="top",
                )
            figure.text(0.5, BOTTOM_MARGIN / 2, f"Page {number} of {max(len(pages), 1)}", ha="center", fontsize=7)
            pdf.savefig(figure)
    return buffer.getvalue()


def export_portfolio_pdf(
    positions: Sequence[Position],
    prices: Mapping[str, float],
    *,
    lines_per_page: int = 48,
    generated_at: datetime | None = None,
) -> bytes:
    lines = build_report_lines(positions, prices, generated_at=generated_at)
    return render_pdf(paginate(lines, lines_per_page), lines_per_page)


__all__ = [
    "ReportLine",
    "build_report_lines",
    "export_portfolio_pdf",
    "format_money",
    "format_pct",
    "paginate",
    "render_pdf",
]

"""Treemap layout by recursive binary splitting.

Items are sorted by value, then the list is cut where the running total first
reaches half of the slice's value. The longer side of the current rectangle is
divided between the two halves in proportion to their totals, and each half
recurses. Every rectangle's area is its exact share of the whole.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from portfolio_tracker.services.analytics import TickerPerformance


@dataclass(frozen=True)
class TreemapItem:
    key: str
    value: float
    pl_pct: float = 0.0


@dataclass(frozen=True)
class TreemapRect:
    key: str
    x: float
    y: float
    w: float
    h: float
    value: float
    pl_pct: float
    color: str

    @property
    def area(self) -> float:
        return self.w * self.h


# Lower bound of each P&L% band, strongest gain first; anything below the last bound is the final color.
PL_COLOR_BANDS: tuple[tuple[float, str], ...] = (
    (50.0, "#15803d"),
    (20.0, "#16a34a"),
    (5.0, "#22c55e"),
    (0.0, "#4ade80"),
    (-5.0, "#f87171"),
    (-20.0, "#ef4444"),
    (-50.0, "#dc2626"),
)
PL_COLOR_FLOOR = "#991b1b"


def pl_color(pl_pct: float) -> str:
    for bound, color in PL_COLOR_BANDS:
        if pl_pct >= bound:
            return color
    return PL_COLOR_FLOOR


def _split_index(items: Sequence[TreemapItem], total: float) -> int:
    half = total / 2
    running = 0.0
    for index, item in enumerate(items):
        running += item.value
        if running >= half:
            return min(index + 1, len(items) - 1)
    return len(items) - 1


def _layout(
    items: Sequence[TreemapItem],
    x: float,
    y: float,
    w: float,
    h: float,
    out: list[TreemapRect],
) -> None:
    if not items:
        return
    if len(items) == 1:
        item = items[0]
        out.append(TreemapRect(item.key, x, y, w, h, item.value, item.pl_pct, pl_color(item.pl_pct)))
        return

    total = sum(item.value for item in items)
    cut = _split_index(items, total)
    first, second = items[:cut], items[cut:]
    share = sum(item.value for item in first) / total
    if w >= h:
        first_w = w * share
        _layout(first, x, y, first_w, h, out)
        _layout(second, x + first_w, y, w - first_w, h, out)
    else:
        first_h = h * share
        _layout(first, x, y, w, first_h, out)
        _layout(second, x, y + first_h, w, h - first_h, out)


def layout(items: Iterable[TreemapItem], width: float, height: float) -> list[TreemapRect]:
    """Tile ``width`` x ``height`` with one rectangle per positive-valued item."""

    ordered = sorted((i for i in items if i.value > 0), key=lambda i: i.value, reverse=True)
    rects: list[TreemapRect] = []
    if width <= 0 or height <= 0:
        return rects
    _layout(ordered, 0.0, 0.0, float(width), float(height), rects)
    return rects


def items_from_performance(rows: Iterable[TickerPerformance]) -> list[TreemapItem]:
    return [TreemapItem(key=r.ticker, value=r.value, pl_pct=r.pl_pct) for r in rows]


__all__ = [
    "PL_COLOR_BANDS",
    "TreemapItem",
    "TreemapRect",
    "items_from_performance",
    "layout",
    "pl_color",
]

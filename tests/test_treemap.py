from __future__ import annotations

import random

import pytest

from portfolio_tracker.services.treemap import TreemapItem, TreemapRect, layout, pl_color


def overlaps(a: TreemapRect, b: TreemapRect, eps: float = 1e-9) -> bool:
    return (
        a.x < b.x + b.w - eps
        and b.x < a.x + a.w - eps
        and a.y < b.y + b.h - eps
        and b.y < a.y + a.h - eps
    )


def random_items(rng: random.Random, count: int) -> list[TreemapItem]:
    return [TreemapItem(key=f"T{i}", value=rng.uniform(1, 1000), pl_pct=rng.uniform(-80, 80)) for i in range(count)]


def test_empty_input_yields_no_rectangles():
    assert layout([], 800, 600) == []


def test_single_item_fills_rectangle():
    rects = layout([TreemapItem("AAPL", 10.0)], 800, 600)

    assert [(r.x, r.y, r.w, r.h) for r in rects] == [(0.0, 0.0, 800.0, 600.0)]


@pytest.mark.parametrize("seed", range(20))
def test_area_is_conserved_without_overlap(seed):
    rng = random.Random(seed)
    items = random_items(rng, rng.randint(1, 15))
    width, height = rng.uniform(100, 1200), rng.uniform(100, 900)

    rects = layout(items, width, height)

    assert len(rects) == len(items)
    assert sum(r.area for r in rects) == pytest.approx(width * height)
    total = sum(i.value for i in items)
    for rect in rects:
        assert rect.area == pytest.approx(rect.value / total * width * height)
        assert rect.x >= -1e-9 and rect.y >= -1e-9
        assert rect.x + rect.w <= width + 1e-6 and rect.y + rect.h <= height + 1e-6
    for i, a in enumerate(rects):
        for b in rects[i + 1:]:
            assert not overlaps(a, b)


def test_doubling_a_value_grows_its_area_and_keeps_order():
    items = [TreemapItem("A", 40.0), TreemapItem("B", 30.0), TreemapItem("C", 30.0), TreemapItem("D", 10.0)]
    before = {r.key: r.area for r in layout(items, 500, 300)}

    doubled = [TreemapItem(i.key, i.value * 2 if i.key == "D" else i.value) for i in items]
    after = {r.key: r.area for r in layout(doubled, 500, 300)}

    assert after["D"] > before["D"]
    assert after["B"] == pytest.approx(after["C"])
    assert after["A"] > after["B"]


def test_non_positive_values_are_skipped():
    rects = layout([TreemapItem("A", 5.0), TreemapItem("B", 0.0), TreemapItem("C", -1.0)], 10, 10)

    assert [r.key for r in rects] == ["A"]


def test_wide_rectangle_splits_horizontally():
    rects = layout([TreemapItem("A", 1.0), TreemapItem("B", 1.0)], 200, 100)

    assert [(r.x, r.w, r.h) for r in rects] == [(0.0, 100.0, 100.0), (100.0, 100.0, 100.0)]


@pytest.mark.parametrize(
    "pl_pct,color",
    [
        (75.0, "#15803d"),
        (50.0, "#15803d"),
        (25.0, "#16a34a"),
        (5.0, "#22c55e"),
        (0.0, "#4ade80"),
        (-1.0, "#f87171"),
        (-5.0, "#f87171"),
        (-20.0, "#ef4444"),
        (-50.0, "#dc2626"),
        (-80.0, "#991b1b"),
    ],
)
def test_pl_color_bands(pl_pct, color):
    assert pl_color(pl_pct) == color

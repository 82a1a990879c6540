"""Badge rules evaluated against each live valuation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence

from portfolio_tracker.services.analytics import TickerPerformance, compute_valuation, ticker_performance
from portfolio_tracker.services.positions import Position
from portfolio_tracker.services.prices import DataSource
from portfolio_tracker.services.storage import ACHIEVEMENTS_KEY, BlobRepository, Storage

logger = logging.getLogger(__name__)

COMPARATORS = {
    ">": lambda lhs, rhs: lhs > rhs,
    ">=": lambda lhs, rhs: lhs >= rhs,
    "<": lambda lhs, rhs: lhs < rhs,
    "<=": lambda lhs, rhs: lhs <= rhs,
}


@dataclass(frozen=True)
class BadgeContext:
    total_value: float
    total_pl: float
    tickers: list[TickerPerformance]
    distinct_tickers: int

    @classmethod
    def build(cls, positions: Sequence[Position], prices: Mapping[str, float]) -> "BadgeContext":
        valuation = compute_valuation(positions, prices)
        return cls(
            total_value=valuation.total_value,
            total_pl=valuation.total_pl,
            tickers=ticker_performance(positions, prices),
            distinct_tickers=len({p.ticker for p in positions}),
        )


@dataclass(frozen=True)
class AchievementRule:
    badge_id: str
    title: str
    description: str
    metric: Callable[[BadgeContext], float | None]
    op: str
    threshold: float

    def matches(self, context: BadgeContext) -> bool:
        if self.op not in COMPARATORS:
            raise ValueError(f"Invalid comparator in badge rule {self.badge_id}: {self.op}")
        value = self.metric(context)
        if value is None:
            return False
        return COMPARATORS[self.op](value, self.threshold)


def _best_ticker_pct(context: BadgeContext) -> float | None:
    return max((t.pl_pct for t in context.tickers), default=None)


def _worst_ticker_pct(context: BadgeContext) -> float | None:
    return min((t.pl_pct for t in context.tickers), default=None)


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule(
        "in_the_green", "In the Green", "Total P&L turned positive", lambda c: c.total_pl, ">", 0.0
    ),
    AchievementRule("moonshot", "Moonshot", "A holding is up 400% or more", _best_ticker_pct, ">=", 400.0),
    AchievementRule(
        "diamond_hands", "Diamond Hands", "Holding through a 20% drawdown", _worst_ticker_pct, "<=", -20.0
    ),
    AchievementRule(
        "quarter_mil_club", "Quarter Mil Club", "Portfolio worth $250,000", lambda c: c.total_value, ">=", 250_000.0
    ),
    AchievementRule(
        "diversified", "Diversified", "Ten or more different tickers", lambda c: c.distinct_tickers, ">=", 10
    ),
)


def evaluate_badges(context: BadgeContext, rules: Iterable[AchievementRule] = ACHIEVEMENT_RULES) -> list[str]:
    """Ids of every rule whose predicate holds for ``context``."""

    return [rule.badge_id for rule in rules if rule.matches(context)]


class AchievementTracker:
    """Persisted badge flags; a flag only ever goes from unset to set."""

    def __init__(self, storage: Storage, rules: Sequence[AchievementRule] = ACHIEVEMENT_RULES) -> None:
        self.rules = tuple(rules)
        self._repository: BlobRepository[dict[str, bool]] = BlobRepository(
            storage, ACHIEVEMENTS_KEY, dict[str, bool], self._defaults
        )
        self._state = self._defaults()

    def _defaults(self) -> dict[str, bool]:
        return {rule.badge_id: False for rule in self.rules}

    @property
    def state(self) -> dict[str, bool]:
        return dict(self._state)

    def unlocked(self) -> list[str]:
        return [badge for badge, earned in self._state.items() if earned]

    async def load(self) -> dict[str, bool]:
        self._state = {**self._defaults(), **await self._repository.load()}
        return self.state

    async def evaluate(
        self,
        positions: Sequence[Position],
        prices: Mapping[str, float],
        status: DataSource,
    ) -> list[str]:
        """Unlock newly satisfied badges; returns the ids unlocked by this call."""

        if status is not DataSource.LIVE:
            return []
        pending = [rule for rule in self.rules if not self._state.get(rule.badge_id)]
        if not pending:
            return []
        earned = evaluate_badges(BadgeContext.build(positions, prices), pending)
        if not earned:
            return []

        def merge(stored: dict[str, bool]) -> dict[str, bool]:
            merged = {**self._defaults(), **stored}
            merged.update({badge: True for badge in earned})
            return merged

        self._state = await self._repository.update(merge)
        logger.info("Unlocked achievements: %s", ", ".join(earned))
        return earned


__all__ = [
    "ACHIEVEMENT_RULES",
    "AchievementRule",
    "AchievementTracker",
    "BadgeContext",
    "COMPARATORS",
    "evaluate_badges",
]

"""Session one-shot guards, daily value snapshots and the all-time high."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from portfolio_tracker.services.prices import DataSource
from portfolio_tracker.services.storage import ATH_KEY, DAILY_PL_KEY, HISTORY_KEY, BlobRepository, Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GuardState(str, Enum):
    NOT_STARTED = "not_started"
    COMPLETED = "completed"


@dataclass
class OneShotGuard:
    """Lets an action run at most once per session."""

    name: str
    state: GuardState = GuardState.NOT_STARTED

    @property
    def completed(self) -> bool:
        return self.state is GuardState.COMPLETED

    def claim(self) -> bool:
        """Mark the guard completed; ``True`` only for the first caller."""

        if self.completed:
            return False
        self.state = GuardState.COMPLETED
        return True


@dataclass
class SessionContext:
    snapshot: OneShotGuard = field(default_factory=lambda: OneShotGuard("snapshot"))
    daily_pl: OneShotGuard = field(default_factory=lambda: OneShotGuard("daily-pl"))
    all_time_high: OneShotGuard = field(default_factory=lambda: OneShotGuard("all-time-high"))
    news: OneShotGuard = field(default_factory=lambda: OneShotGuard("news"))

    def states(self) -> dict[str, GuardState]:
        return {g.name: g.state for g in (self.snapshot, self.daily_pl, self.all_time_high, self.news)}


@dataclass(frozen=True)
class SeriesPoint:
    date: date
    value: float


class DailySeriesRepository:
    """Date-keyed value map persisted as one blob; one entry per calendar day."""

    def __init__(self, storage: Storage, key: str) -> None:
        self._repository: BlobRepository[dict[str, float]] = BlobRepository(storage, key, dict[str, float], dict)

    async def load(self) -> dict[str, float]:
        return await self._repository.load()

    async def record(self, day: date, value: float) -> dict[str, float]:
        """Write ``value`` under ``day``, replacing any earlier value for that day."""

        def merge(stored: dict[str, float]) -> dict[str, float]:
            return {**stored, day.isoformat(): value}

        return await self._repository.update(merge)

    async def series(self) -> list[SeriesPoint]:
        return series_from_map(await self.load())


def series_from_map(values: dict[str, float]) -> list[SeriesPoint]:
    points: list[SeriesPoint] = []
    for key, value in values.items():
        try:
            points.append(SeriesPoint(date=date.fromisoformat(key), value=float(value)))
        except (TypeError, ValueError):
            logger.warning("Skipping malformed history entry %r", key)
    return sorted(points, key=lambda p: p.date)


def history_repository(storage: Storage) -> DailySeriesRepository:
    return DailySeriesRepository(storage, HISTORY_KEY)


def daily_pl_repository(storage: Storage) -> DailySeriesRepository:
    return DailySeriesRepository(storage, DAILY_PL_KEY)


def daily_pl_bars(points: list[SeriesPoint]) -> list[SeriesPoint]:
    """Day-over-day change; empty until at least two days are recorded."""

    return [
        SeriesPoint(date=current.date, value=current.value - previous.value)
        for previous, current in zip(points, points[1:])
    ]


@dataclass(frozen=True)
class HighCheck:
    previous: float
    current: float
    new_high: bool
    celebrate: bool


class AllTimeHighTracker:
    def __init__(self, storage: Storage, on_new_high: Callable[[HighCheck], None] | None = None) -> None:
        self._repository: BlobRepository[float] = BlobRepository(storage, ATH_KEY, float, float)
        self._on_new_high = on_new_high

    async def load(self) -> float:
        return await self._repository.load()

    async def check(self, value: float) -> HighCheck:
        previous = await self._repository.load()
        if value <= previous:
            return HighCheck(previous=previous, current=previous, new_high=False, celebrate=False)
        await self._repository.save(value)
        result = HighCheck(previous=previous, current=value, new_high=True, celebrate=previous > 0)
        if result.celebrate:
            logger.info("New all-time high: %.2f (previous %.2f)", value, previous)
            if self._on_new_high is not None:
                self._on_new_high(result)
        return result


@dataclass
class ObservationResult:
    snapshot_recorded: bool = False
    daily_pl_recorded: bool = False
    high: HighCheck | None = None


class SnapshotLifecycle:
    """Records the first live valuation of each session.

    Observations made while prices are connecting or simulated, or with an
    empty portfolio, are ignored and leave the guards untouched. A step whose
    write fails also stays pending and is retried on the next live cycle.
    """

    def __init__(
        self,
        session: SessionContext,
        history: DailySeriesRepository,
        daily_pl: DailySeriesRepository,
        all_time_high: AllTimeHighTracker,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.session = session
        self.history = history
        self.daily_pl = daily_pl
        self.all_time_high = all_time_high
        self._today = today

    async def observe(self, total_value: float, status: DataSource) -> ObservationResult:
        result = ObservationResult()
        if status is not DataSource.LIVE or total_value <= 0:
            return result
        day = self._today()
        value = round(total_value, 2)
        result.snapshot_recorded, _ = await self._once(self.session.snapshot, lambda: self.history.record(day, value))
        result.daily_pl_recorded, _ = await self._once(self.session.daily_pl, lambda: self.daily_pl.record(day, value))
        _, result.high = await self._once(self.session.all_time_high, lambda: self.all_time_high.check(total_value))
        return result

    async def _once(self, guard: OneShotGuard, step: Callable[[], Awaitable[T]]) -> tuple[bool, T | None]:
        """Run ``step`` unless ``guard`` is completed; the guard completes only on success."""

        if guard.completed:
            return False, None
        try:
            outcome = await step()
        except Exception:  # noqa: BLE001 - left pending for the next live cycle
            logger.exception("Session step %s failed", guard.name)
            return False, None
        guard.claim()
        return True, outcome


__all__ = [
    "AllTimeHighTracker",
    "DailySeriesRepository",
    "GuardState",
    "HighCheck",
    "ObservationResult",
    "OneShotGuard",
    "SeriesPoint",
    "SessionContext",
    "SnapshotLifecycle",
    "daily_pl_bars",
    "daily_pl_repository",
    "history_repository",
    "series_from_map",
]

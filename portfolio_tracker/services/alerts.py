"""Price alerts, transient banners and desktop notifications."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Mapping, Protocol

from portfolio_tracker.services.storage import ALERTS_KEY, BlobRepository, Storage

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"


@dataclass(frozen=True)
class PriceAlert:
    id: int
    ticker: str
    target_price: float
    direction: AlertDirection
    triggered: bool = False

    def condition_met(self, price: float) -> bool:
        if self.direction is AlertDirection.ABOVE:
            return price >= self.target_price
        return price <= self.target_price


@dataclass(frozen=True)
class Banner:
    alert_id: int
    ticker: str
    message: str
    created_at: datetime
    expires_at: datetime


def alert_message(alert: PriceAlert, price: float) -> str:
    verb = "rose above" if alert.direction is AlertDirection.ABOVE else "fell below"
    return f"{alert.ticker} {verb} ${alert.target_price:,.2f} (now ${price:,.2f})"


class BannerBoard:
    """In-app banners that disappear after a fixed lifetime."""

    def __init__(self, lifetime_seconds: float, *, clock: Clock | None = None) -> None:
        self._lifetime = timedelta(seconds=lifetime_seconds)
        self._clock = clock or _utcnow
        self._banners: list[Banner] = []

    def push(self, alert: PriceAlert, price: float) -> Banner:
        now = self._clock()
        banner = Banner(
            alert_id=alert.id,
            ticker=alert.ticker,
            message=alert_message(alert, price),
            created_at=now,
            expires_at=now + self._lifetime,
        )
        self._banners.append(banner)
        return banner

    def active(self) -> list[Banner]:
        now = self._clock()
        self._banners = [b for b in self._banners if b.expires_at > now]
        return list(self._banners)

    def dismiss(self, alert_id: int) -> None:
        self._banners = [b for b in self._banners if b.alert_id != alert_id]


class DesktopNotifier(Protocol):
    permission_granted: bool

    def notify(self, title: str, body: str) -> None:
        ...


class LogDesktopNotifier:
    """Desktop notification sink that writes to the log when permitted."""

    def __init__(self, permission_granted: bool = False) -> None:
        self.permission_granted = permission_granted
        self.sent: list[tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))
        logger.info("Desktop notification: %s - %s", title, body)


def alerts_repository(storage: Storage) -> BlobRepository[list[PriceAlert]]:
    return BlobRepository(storage, ALERTS_KEY, list[PriceAlert], list)


class AlertBook:
    """Ordered persisted alerts; ``triggered`` is set once and never cleared."""

    def __init__(
        self,
        repository: BlobRepository[list[PriceAlert]],
        banners: BannerBoard,
        desktop: DesktopNotifier | None = None,
    ) -> None:
        self._repository = repository
        self.banners = banners
        self._desktop = desktop
        self._alerts: list[PriceAlert] = []
        self._next_id = 1

    @property
    def alerts(self) -> list[PriceAlert]:
        return list(self._alerts)

    async def load(self) -> list[PriceAlert]:
        self._alerts = list(await self._repository.load())
        self._bump_next_id(self._alerts)
        return self.alerts

    def _bump_next_id(self, alerts: list[PriceAlert]) -> None:
        highest = max((a.id for a in alerts), default=0)
        self._next_id = max(self._next_id, highest + 1)

    async def create(self, ticker: str, target_price: float, direction: AlertDirection | str) -> PriceAlert | None:
        """Add an alert; blank tickers and non-positive targets are ignored."""

        symbol = (ticker or "").strip().upper()
        if not symbol or not math.isfinite(target_price) or target_price <= 0:
            return None
        created: list[PriceAlert] = []

        def merge(stored: list[PriceAlert]) -> list[PriceAlert]:
            self._bump_next_id(stored)
            alert = PriceAlert(
                id=self._next_id,
                ticker=symbol,
                target_price=target_price,
                direction=AlertDirection(direction),
            )
            created.append(alert)
            return [*stored, alert]

        self._alerts = await self._repository.update(merge)
        self._next_id += 1
        return created[0]

    async def delete(self, alert_id: int) -> bool:
        removed = False

        def merge(stored: list[PriceAlert]) -> list[PriceAlert]:
            nonlocal removed
            kept = [a for a in stored if a.id != alert_id]
            removed = len(kept) != len(stored)
            return kept

        self._alerts = await self._repository.update(merge)
        if removed:
            self.banners.dismiss(alert_id)
        return removed

    def _due(self, alerts: list[PriceAlert], prices: Mapping[str, float]) -> dict[int, float]:
        due: dict[int, float] = {}
        for alert in alerts:
            price = prices.get(alert.ticker)
            if alert.triggered or not price or price <= 0:
                continue
            if alert.condition_met(price):
                due[alert.id] = price
        return due

    async def evaluate(self, prices: Mapping[str, float]) -> list[PriceAlert]:
        """Trigger every pending alert whose condition holds at ``prices``."""

        if not self._due(self._alerts, prices):
            return []
        fired: list[tuple[PriceAlert, float]] = []

        def merge(stored: list[PriceAlert]) -> list[PriceAlert]:
            due = self._due(stored, prices)
            updated: list[PriceAlert] = []
            for alert in stored:
                if alert.id in due:
                    alert = replace(alert, triggered=True)
                    fired.append((alert, due[alert.id]))
                updated.append(alert)
            return updated

        self._alerts = await self._repository.update(merge)
        for alert, price in fired:
            banner = self.banners.push(alert, price)
            logger.info("Price alert %d fired: %s", alert.id, banner.message)
            if self._desktop is not None and self._desktop.permission_granted:
                self._desktop.notify(f"Price alert: {alert.ticker}", banner.message)
        return [alert for alert, _ in fired]


__all__ = [
    "AlertBook",
    "AlertDirection",
    "Banner",
    "BannerBoard",
    "DesktopNotifier",
    "LogDesktopNotifier",
    "PriceAlert",
    "alert_message",
    "alerts_repository",
]

"""Position store: holdings CRUD plus CSV ingestion."""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import pandas as pd

from portfolio_tracker.config import DEFAULT_ACCOUNT
from portfolio_tracker.config.catalog import ACCOUNTS, DEMO_POSITIONS
from portfolio_tracker.services.storage import POSITIONS_KEY, BlobRepository, Storage

logger = logging.getLogger(__name__)

# Accepted header spellings per canonical field, matched case-insensitively in order.
CSV_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "ticker": ("ticker",),
    "shares": ("shares",),
    "avg_cost": ("avgcost", "avg_cost", "cost"),
    "account": ("account",),
}
REQUIRED_CSV_FIELDS = ("ticker", "shares", "avg_cost")


@dataclass(frozen=True)
class Position:
    id: int
    ticker: str
    shares: float
    avg_cost: float
    account: str

    @property
    def cost_basis(self) -> float:
        return self.shares * self.avg_cost


@dataclass(frozen=True)
class PositionDraft:
    """Validated user input for a position that has not been assigned an id."""

    ticker: str
    shares: float
    avg_cost: float
    account: str = DEFAULT_ACCOUNT


def _parse_number(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "").lstrip("$")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def normalize_account(value: Any) -> str:
    text = str(value).strip() if value is not None and not _is_missing(value) else ""
    for account in ACCOUNTS:
        if text.lower() == account.lower():
            return account
    if text:
        logger.debug("Unknown account %r; using %s", text, DEFAULT_ACCOUNT)
    return DEFAULT_ACCOUNT


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def parse_position_form(
    ticker: Any,
    shares: Any,
    avg_cost: Any,
    account: Any = DEFAULT_ACCOUNT,
) -> PositionDraft | None:
    """Turn raw form input into a draft; incomplete or non-numeric input yields ``None``."""

    if _is_missing(ticker):
        return None
    shares_value = _parse_number(shares)
    cost_value = _parse_number(avg_cost)
    if shares_value is None or cost_value is None:
        return None
    return PositionDraft(
        ticker=str(ticker).strip().upper(),
        shares=shares_value,
        avg_cost=cost_value,
        account=normalize_account(account),
    )


def resolve_csv_columns(columns: Iterable[str]) -> dict[str, str]:
    """Map canonical field names to the first matching header present in the file."""

    by_lower: dict[str, str] = {}
    for column in columns:
        by_lower.setdefault(str(column).strip().lower(), column)
    resolved: dict[str, str] = {}
    for field, aliases in CSV_FIELD_ALIASES.items():
        for alias in aliases:
            if alias in by_lower:
                resolved[field] = by_lower[alias]
                break
    return resolved


def parse_positions_csv(text: str) -> list[PositionDraft]:
    """Parse an uploaded CSV into drafts, silently dropping incomplete rows."""

    if not text.strip():
        return []
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError):
        logger.warning("CSV import could not be parsed")
        return []

    columns = resolve_csv_columns(frame.columns)
    if any(field not in columns for field in REQUIRED_CSV_FIELDS):
        logger.warning("CSV import is missing required columns; found %s", list(frame.columns))
        return []

    drafts: list[PositionDraft] = []
    for record in frame.to_dict(orient="records"):
        draft = parse_position_form(
            record.get(columns["ticker"]),
            record.get(columns["shares"]),
            record.get(columns["avg_cost"]),
            record.get(columns["account"]) if "account" in columns else DEFAULT_ACCOUNT,
        )
        if draft is not None:
            drafts.append(draft)
    dropped = len(frame) - len(drafts)
    if dropped:
        logger.info("CSV import dropped %d incomplete row(s)", dropped)
    return drafts


def positions_repository(storage: Storage, *, seed_demo: bool = False) -> BlobRepository[list[Position]]:
    def default() -> list[Position]:
        if not seed_demo:
            return []
        return [Position(**row) for row in DEMO_POSITIONS]  # type: ignore[arg-type]

    return BlobRepository(storage, POSITIONS_KEY, list[Position], default)


class PositionStore:
    """Owns the ordered list of positions and persists it after each change."""

    def __init__(self, repository: BlobRepository[list[Position]]) -> None:
        self._repository = repository
        self._positions: list[Position] = []
        self._next_id = 1

    @property
    def positions(self) -> tuple[Position, ...]:
        return tuple(self._positions)

    def tickers(self) -> list[str]:
        """Distinct tickers in first-seen order."""

        return list(dict.fromkeys(p.ticker for p in self._positions))

    def get(self, position_id: int) -> Position | None:
        return next((p for p in self._positions if p.id == position_id), None)

    async def load(self) -> list[Position]:
        self._positions = list(await self._repository.load())
        self._bump_next_id(self._positions)
        return list(self._positions)

    def _bump_next_id(self, positions: Sequence[Position]) -> None:
        highest = max((p.id for p in positions), default=0)
        self._next_id = max(self._next_id, highest + 1)

    def _assign(self, draft: PositionDraft) -> Position:
        position = Position(
            id=self._next_id,
            ticker=draft.ticker.upper(),
            shares=draft.shares,
            avg_cost=draft.avg_cost,
            account=draft.account,
        )
        self._next_id += 1
        return position

    async def add(self, draft: PositionDraft) -> Position:
        return (await self.add_many([draft]))[0]

    async def add_many(self, drafts: Sequence[PositionDraft]) -> list[Position]:
        if not drafts:
            return []

        def merge(stored: list[Position]) -> list[Position]:
            self._bump_next_id(stored)
            created.extend(self._assign(d) for d in drafts)
            return [*stored, *created]

        created: list[Position] = []
        self._positions = await self._repository.update(merge)
        return created

    async def import_csv(self, text: str) -> list[Position]:
        return await self.add_many(parse_positions_csv(text))

    async def remove(self, position_id: int) -> bool:
        removed = False

        def merge(stored: list[Position]) -> list[Position]:
            nonlocal removed
            kept = [p for p in stored if p.id != position_id]
            removed = len(kept) != len(stored)
            return kept

        self._positions = await self._repository.update(merge)
        return removed


__all__ = [
    "CSV_FIELD_ALIASES",
    "Position",
    "PositionDraft",
    "PositionStore",
    "normalize_account",
    "parse_position_form",
    "parse_positions_csv",
    "positions_repository",
    "resolve_csv_columns",
]

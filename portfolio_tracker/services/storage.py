"""Keyed blob storage and the JSON repositories layered on top of it.

Persisted dashboard state is a handful of structured-text blobs under fixed
keys. Storage has no partial-update primitive, so every mutation reads the
whole blob, merges the change and writes the whole blob back. Corrupt or
missing blobs load as the repository's default instead of raising.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from portfolio_tracker.db.session import Database
from portfolio_tracker.models import StoredBlob

logger = logging.getLogger(__name__)

POSITIONS_KEY = "portfolio-positions"
HISTORY_KEY = "portfolio-history"
DAILY_PL_KEY = "portfolio-daily-pl"
THEME_KEY = "portfolio-theme"
ATH_KEY = "portfolio-ath"
ACHIEVEMENTS_KEY = "portfolio-achievements"
ALERTS_KEY = "portfolio-alerts"

T = TypeVar("T")


class Storage(Protocol):
    """Async key/value text store."""

    async def read(self, key: str) -> str | None:
        ...

    async def write(self, key: str, value: str) -> None:
        ...


class InMemoryStorage:
    """Dictionary-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.blobs: dict[str, str] = dict(initial or {})
        self.writes = 0

    async def read(self, key: str) -> str | None:
        return self.blobs.get(key)

    async def write(self, key: str, value: str) -> None:
        self.writes += 1
        self.blobs[key] = value


class SqlStorage:
    """Storage persisted to the ``stored_blob`` table."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def read(self, key: str) -> str | None:
        async with self._database.session() as session:
            row = await session.get(StoredBlob, key)
            return row.value if row is not None else None

    async def write(self, key: str, value: str) -> None:
        async with self._database.session() as session:
            await session.merge(StoredBlob(key=key, value=value))
            await session.commit()


class BlobRepository(Generic[T]):
    """Typed JSON blob stored under one key, with a default for bad data."""

    def __init__(
        self,
        storage: Storage,
        key: str,
        type_: type[T] | object,
        default_factory: Callable[[], T],
    ) -> None:
        self._storage = storage
        self._key = key
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)
        self._default_factory = default_factory

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> T:
        raw = await self._storage.read(self._key)
        if raw is None:
            return self._default_factory()
        try:
            return self._adapter.validate_json(raw)
        except (ValidationError, ValueError):
            logger.warning("Discarding unreadable blob under %s; using default", self._key)
            return self._default_factory()

    async def save(self, value: T) -> None:
        await self._storage.write(self._key, self._adapter.dump_json(value).decode("utf-8"))

    async def update(self, mutate: Callable[[T], T]) -> T:
        """Read the full blob, apply ``mutate`` and write the result back."""

        merged = mutate(await self.load())
        await self.save(merged)
        return merged


__all__ = [
    "ACHIEVEMENTS_KEY",
    "ALERTS_KEY",
    "ATH_KEY",
    "BlobRepository",
    "DAILY_PL_KEY",
    "HISTORY_KEY",
    "InMemoryStorage",
    "POSITIONS_KEY",
    "SqlStorage",
    "Storage",
    "THEME_KEY",
]

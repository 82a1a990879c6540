"""Persisted UI preferences."""

from __future__ import annotations

from enum import Enum

from portfolio_tracker.services.storage import THEME_KEY, BlobRepository, Storage


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"


class ThemePreference:
    def __init__(self, storage: Storage, default: Theme = Theme.DARK) -> None:
        self._repository: BlobRepository[Theme] = BlobRepository(storage, THEME_KEY, Theme, lambda: default)

    async def get(self) -> Theme:
        return await self._repository.load()

    async def set(self, theme: Theme | str) -> Theme:
        value = Theme(theme)
        await self._repository.save(value)
        return value


__all__ = ["Theme", "ThemePreference"]

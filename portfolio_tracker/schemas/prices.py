"""Schemas for price cache endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from portfolio_tracker.services.prices import DataSource


class PriceQuoteSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current: float
    prev: float
    change: float
    change_pct: float


class PricesResponse(BaseModel):
    status: DataSource
    quotes: dict[str, PriceQuoteSchema]


class RefreshResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: DataSource
    live: list[str]
    simulated: list[str]
    manual: list[str]
    completed_at: datetime


class HistoryPointSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    price: float


class TickerHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ticker: str
    live: bool
    points: list[HistoryPointSchema]


__all__ = [
    "HistoryPointSchema",
    "PriceQuoteSchema",
    "PricesResponse",
    "RefreshResponse",
    "TickerHistoryResponse",
]

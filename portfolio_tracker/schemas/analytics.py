"""Schemas for derived portfolio views."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class ValuationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_value: float
    total_cost: float
    total_pl: float
    total_pl_pct: float


class SummaryResponse(BaseModel):
    account: str
    all: ValuationSchema
    filtered: ValuationSchema
    data_source: str


class SliceSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    value: float


class BreakdownResponse(BaseModel):
    accounts: list[SliceSchema]
    sectors: list[SliceSchema]
    tickers: list[SliceSchema]


class PositionRowSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticker: str
    account: str
    shares: float
    avg_cost: float
    price: float
    value: float
    pl: float
    pl_pct: float


class TickerPerformanceSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ticker: str
    shares: float
    value: float
    cost: float
    pl: float
    pl_pct: float


class MoversResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    gainers: list[TickerPerformanceSchema]
    losers: list[TickerPerformanceSchema]


class CorrelationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tickers: list[str]
    values: list[list[float]]


class TreemapRectSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    x: float
    y: float
    w: float
    h: float
    value: float
    pl_pct: float
    color: str


class SeriesPointSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    value: float


class HistoryResponse(BaseModel):
    history: list[SeriesPointSchema]
    daily_pl: list[SeriesPointSchema]
    all_time_high: float


class WhatIfRequest(BaseModel):
    ticker: str | None = None
    shares: float | None = None
    price: float | None = Field(default=None, description="Trade price; defaults to the current price.")


class WhatIfResponse(BaseModel):
    ticker: str
    shares: float
    price: float
    before: ValuationSchema
    after: ValuationSchema
    value_delta: float
    pl_delta: float


__all__ = [
    "BreakdownResponse",
    "CorrelationResponse",
    "HistoryResponse",
    "MoversResponse",
    "PositionRowSchema",
    "SeriesPointSchema",
    "SliceSchema",
    "SummaryResponse",
    "TickerPerformanceSchema",
    "TreemapRectSchema",
    "ValuationSchema",
    "WhatIfRequest",
    "WhatIfResponse",
]

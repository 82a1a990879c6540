"""Schemas for news and earnings feeds."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class NewsItemSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ticker: str
    headline: str
    source: str
    published_at: datetime
    url: str


class EarningsEventSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ticker: str
    date: date
    hour: str | None = None
    eps_estimate: float | None = None
    revenue_estimate: float | None = None


__all__ = ["EarningsEventSchema", "NewsItemSchema"]

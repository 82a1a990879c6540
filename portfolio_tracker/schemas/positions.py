"""Schemas for holdings endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.config import DEFAULT_ACCOUNT


class PositionCreateRequest(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)
    shares: float = Field(..., ge=0)
    avg_cost: float = Field(..., ge=0)
    account: str = DEFAULT_ACCOUNT


class PositionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticker: str
    shares: float
    avg_cost: float
    account: str


class ImportResultSchema(BaseModel):
    imported: int
    positions: list[PositionSchema]


__all__ = ["ImportResultSchema", "PositionCreateRequest", "PositionSchema"]

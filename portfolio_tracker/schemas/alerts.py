"""Schemas for price alerts, badges and preferences."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.services.alerts import AlertDirection
from portfolio_tracker.services.preferences import Theme


class AlertCreateRequest(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)
    target_price: float = Field(..., gt=0)
    direction: AlertDirection


class PriceAlertSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticker: str
    target_price: float
    direction: AlertDirection
    triggered: bool


class BannerSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    alert_id: int
    ticker: str
    message: str
    created_at: datetime
    expires_at: datetime


class AchievementSchema(BaseModel):
    id: str
    title: str
    description: str
    unlocked: bool


class ThemeSchema(BaseModel):
    theme: Theme


__all__ = [
    "AchievementSchema",
    "AlertCreateRequest",
    "BannerSchema",
    "PriceAlertSchema",
    "ThemeSchema",
]

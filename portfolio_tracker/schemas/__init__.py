"""Pydantic schema exports."""

from .alerts import AchievementSchema, AlertCreateRequest, BannerSchema, PriceAlertSchema, ThemeSchema
from .analytics import (
    BreakdownResponse,
    CorrelationResponse,
    HistoryResponse,
    MoversResponse,
    PositionRowSchema,
    SeriesPointSchema,
    SliceSchema,
    SummaryResponse,
    TickerPerformanceSchema,
    TreemapRectSchema,
    ValuationSchema,
    WhatIfRequest,
    WhatIfResponse,
)
from .market import EarningsEventSchema, NewsItemSchema
from .positions import ImportResultSchema, PositionCreateRequest, PositionSchema
from .prices import (
    HistoryPointSchema,
    PriceQuoteSchema,
    PricesResponse,
    RefreshResponse,
    TickerHistoryResponse,
)

__all__ = [
    "AchievementSchema",
    "AlertCreateRequest",
    "BannerSchema",
    "BreakdownResponse",
    "CorrelationResponse",
    "EarningsEventSchema",
    "HistoryPointSchema",
    "HistoryResponse",
    "ImportResultSchema",
    "MoversResponse",
    "NewsItemSchema",
    "PositionCreateRequest",
    "PositionRowSchema",
    "PositionSchema",
    "PriceAlertSchema",
    "PriceQuoteSchema",
    "PricesResponse",
    "RefreshResponse",
    "SeriesPointSchema",
    "SliceSchema",
    "SummaryResponse",
    "ThemeSchema",
    "TickerHistoryResponse",
    "TickerPerformanceSchema",
    "TreemapRectSchema",
    "ValuationSchema",
    "WhatIfRequest",
    "WhatIfResponse",
]

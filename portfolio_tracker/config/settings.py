"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACCOUNT = "Fidelity"


class AppSettings(BaseSettings):
    """Configuration options for the portfolio tracker service."""

    app_name: str = Field(default="Portfolio Tracker")
    log_level: str = Field(default="INFO")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./portfolio_tracker.db",
        description="SQLAlchemy database URL for persisted dashboard state.",
    )

    finnhub_api_key: str = Field(default="", description="Quote provider token.")
    finnhub_base_url: str = Field(default="https://finnhub.io/api/v1")
    yahoo_chart_url: str = Field(default="https://query1.finance.yahoo.com/v8/finance/chart")
    http_timeout_seconds: float = Field(default=10.0)

    refresh_interval_seconds: float = Field(default=30.0, gt=0)
    quote_request_delay_seconds: float = Field(
        default=0.25,
        ge=0,
        description="Pause between per-ticker quote requests within one refresh cycle.",
    )
    correlation_request_delay_seconds: float = Field(default=1.1, ge=0)
    rate_limit_backoff_seconds: float = Field(default=3.0, ge=0)
    correlation_top_n: int = Field(default=10, ge=2)
    correlation_lookback_days: int = Field(default=35, ge=3)
    candle_resolution: str = Field(default="D")

    news_lookback_days: int = Field(default=7, ge=1)
    news_request_delay_seconds: float = Field(default=0.5, ge=0)
    news_items_per_ticker: int = Field(default=3, ge=1)
    earnings_lookahead_days: int = Field(default=30, ge=1)

    alert_banner_seconds: float = Field(default=8.0, gt=0)
    desktop_notifications: bool = Field(default=False)

    report_lines_per_page: int = Field(default=48, ge=10)
    seed_demo_positions: bool = Field(default=False)
    default_theme: Literal["dark", "light"] = Field(default="dark")

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="portfolio-tracker")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"finnhub_api_key"}
        return {k: ("***" if k in hidden else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_ACCOUNT",
    "get_settings",
]

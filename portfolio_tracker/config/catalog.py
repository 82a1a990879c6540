"""Static market reference data used by pricing and analytics."""

from __future__ import annotations

ACCOUNTS = ("Fidelity", "Chase", "IBKR")

# No provider feed; valued at cost basis.
MANUAL_TICKERS = frozenset({"VTSAX"})

# Display symbol -> symbol the quote provider knows it by.
SYMBOL_REMAP: dict[str, str] = {
    "BRK.B": "BRK-B",
}

# Provider prices are scaled by these factors before they reach the cache.
PRICE_MULTIPLIERS: dict[str, float] = {
    "KXIAY": 0.1,  # 10:1 split not yet reflected by the provider
}

BASE_PRICES: dict[str, float] = {
    "AAPL": 192.5,
    "MSFT": 415.8,
    "GOOGL": 155.2,
    "AMZN": 190.4,
    "NVDA": 520.3,
    "TSLA": 260.1,
    "META": 510.2,
    "SPY": 525.6,
    "QQQ": 460.3,
    "AMD": 165.8,
    "NFLX": 630.5,
    "DIS": 112.4,
    "V": 280.3,
    "JPM": 198.5,
    "BA": 210.7,
}

OTHER_SECTOR = "Other"

SECTORS: dict[str, str] = {
    "AAPL": "Technology",
    "MSFT": "Technology",
    "GOOGL": "Communication",
    "META": "Communication",
    "NFLX": "Communication",
    "DIS": "Communication",
    "AMZN": "Consumer",
    "TSLA": "Consumer",
    "NVDA": "Semiconductors",
    "AMD": "Semiconductors",
    "MU": "Semiconductors",
    "INTC": "Semiconductors",
    "ASML": "Semiconductors",
    "SNDK": "Semiconductors",
    "TER": "Semiconductors",
    "COHU": "Semiconductors",
    "RKLB": "Aerospace & Defense",
    "SAABY": "Aerospace & Defense",
    "RNMBY": "Aerospace & Defense",
    "BA": "Aerospace & Defense",
    "KRKNF": "Aerospace & Defense",
    "QS": "Energy Storage",
    "ABAT": "Energy Storage",
    "UAMY": "Materials",
    "FCX": "Materials",
    "LYSDY": "Materials",
    "KXIAY": "Industrials",
    "SMERY": "Industrials",
    "SHWDY": "Industrials",
    "BRK.B": "Financials",
    "JPM": "Financials",
    "V": "Financials",
    "VTSAX": "Index Funds",
    "SPY": "Index Funds",
    "QQQ": "Index Funds",
}

DEMO_POSITIONS: tuple[dict[str, object], ...] = (
    {"id": 1, "ticker": "RKLB", "shares": 523, "avg_cost": 38.14, "account": "Chase"},
    {"id": 2, "ticker": "NVDA", "shares": 181.79665, "avg_cost": 153.99, "account": "Chase"},
    {"id": 3, "ticker": "SAABY", "shares": 799, "avg_cost": 27.16, "account": "Chase"},
    {"id": 4, "ticker": "MU", "shares": 43.36685, "avg_cost": 332.66, "account": "Chase"},
    {"id": 5, "ticker": "VTSAX", "shares": 98.233, "avg_cost": 134.51, "account": "Chase"},
    {"id": 6, "ticker": "BRK.B", "shares": 28.10829, "avg_cost": 486.49, "account": "Chase"},
    {"id": 7, "ticker": "QS", "shares": 1481.85422, "avg_cost": 10.24, "account": "Chase"},
    {"id": 8, "ticker": "SNDK", "shares": 18, "avg_cost": 195.94, "account": "Chase"},
    {"id": 9, "ticker": "INTC", "shares": 215.92714, "avg_cost": 41.12, "account": "Chase"},
    {"id": 10, "ticker": "MSFT", "shares": 18.03129, "avg_cost": 495.94, "account": "Chase"},
    {"id": 11, "ticker": "UAMY", "shares": 876, "avg_cost": 9.03, "account": "Chase"},
    {"id": 12, "ticker": "RNMBY", "shares": 17, "avg_cost": 390.13, "account": "Chase"},
    {"id": 13, "ticker": "AAPL", "shares": 22.82144, "avg_cost": 254.16, "account": "Chase"},
    {"id": 14, "ticker": "KXIAY", "shares": 320, "avg_cost": 11.68, "account": "Chase"},
    {"id": 15, "ticker": "ASML", "shares": 3, "avg_cost": 1435, "account": "Chase"},
    {"id": 16, "ticker": "LYSDY", "shares": 325, "avg_cost": 13.65, "account": "Chase"},
    {"id": 17, "ticker": "SMERY", "shares": 18, "avg_cost": 181.9, "account": "Chase"},
    {"id": 18, "ticker": "SHWDY", "shares": 37, "avg_cost": 66.69, "account": "Chase"},
    {"id": 19, "ticker": "COHU", "shares": 73, "avg_cost": 33.79, "account": "Chase"},
    {"id": 20, "ticker": "ABAT", "shares": 500, "avg_cost": 2.59, "account": "Chase"},
    {"id": 21, "ticker": "FCX", "shares": 22.73364, "avg_cost": 61.89, "account": "Chase"},
    {"id": 22, "ticker": "TER", "shares": 8, "avg_cost": 251, "account": "Fidelity"},
    {"id": 23, "ticker": "KRKNF", "shares": 450, "avg_cost": 4.25, "account": "Fidelity"},
)


def sector_for(ticker: str) -> str:
    return SECTORS.get(ticker, OTHER_SECTOR)


def provider_symbol(ticker: str) -> str:
    return SYMBOL_REMAP.get(ticker, ticker)


def price_multiplier(ticker: str) -> float:
    return PRICE_MULTIPLIERS.get(ticker, 1.0)


__all__ = [
    "ACCOUNTS",
    "BASE_PRICES",
    "DEMO_POSITIONS",
    "MANUAL_TICKERS",
    "OTHER_SECTOR",
    "PRICE_MULTIPLIERS",
    "SECTORS",
    "SYMBOL_REMAP",
    "price_multiplier",
    "provider_symbol",
    "sector_for",
]

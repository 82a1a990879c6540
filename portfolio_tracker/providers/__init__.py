"""Market data providers."""

from .base import EarningsEvent, InMemoryQuoteProvider, LiveQuote, NewsItem, QuoteProvider
from .finnhub import FinnhubClient, FinnhubError, FinnhubQuoteProvider

__all__ = [
    "EarningsEvent",
    "FinnhubClient",
    "FinnhubError",
    "FinnhubQuoteProvider",
    "InMemoryQuoteProvider",
    "LiveQuote",
    "NewsItem",
    "QuoteProvider",
]

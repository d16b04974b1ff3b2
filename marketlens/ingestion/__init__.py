"""Data ingestion module - HTTP collectors for market data, news and prediction markets."""

from marketlens.ingestion.collectors import (
    BaseCollector,
    MarketDataCollector,
    NewsCollector,
    PredictionMarketCollector,
)

__all__ = [
    "BaseCollector",
    "MarketDataCollector",
    "NewsCollector",
    "PredictionMarketCollector",
]

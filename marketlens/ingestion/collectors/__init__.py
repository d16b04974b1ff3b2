"""Data collectors for external market, news and prediction-market sources."""

from marketlens.ingestion.collectors.base_collector import BaseCollector
from marketlens.ingestion.collectors.market_data_collector import Fundamentals, MarketDataCollector
from marketlens.ingestion.collectors.news_collector import NewsCollector
from marketlens.ingestion.collectors.prediction_market_collector import (
    MARKET_KEYWORDS,
    PredictionMarketCollector,
)

__all__ = [
    "BaseCollector",
    "Fundamentals",
    "MarketDataCollector",
    "NewsCollector",
    "PredictionMarketCollector",
    "MARKET_KEYWORDS",
]

"""Polymarket prediction-market collector.

Pulls active markets from the Polymarket Gamma API and matches them to tracked
assets and macro themes through a keyword table.

API Reference:
    Base URL: https://gamma-api.polymarket.com
    Markets:  GET /markets?limit=50&active=true&closed=false&order=volume24hr&ascending=false
              [&category=economics]

Market payload (abridged):
    {"id": "12345", "question": "Will the Fed cut rates in March?",
     "description": "...", "outcomes": "[\"Yes\", \"No\"]",
     "outcomePrices": "[\"0.72\", \"0.28\"]", "volume24hr": 150000.0,
     "volumeNum": 2500000.0}

`outcomes` and `outcomePrices` are JSON-encoded strings inside the JSON body.
"""

from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Any

from marketlens.analytics.prediction_markets import (
    PredictionMarketSentiment,
    aggregate,
    sentiment_from_market,
)
from marketlens.ingestion.collectors.base_collector import BaseCollector
from marketlens.shared.exceptions import MarketLensError

MARKET_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "BTC-USD": ("bitcoin", "btc"),
        "ETH-USD": ("ethereum", "eth"),
        "MACRO_FED": (
            "federal reserve",
            "fed rate",
            "interest rate",
            "fomc",
            "rate cut",
            "rate hike",
        ),
        "MACRO_RECESSION": ("recession", "economic downturn", "gdp"),
        "MACRO_INFLATION": ("inflation", "cpi", "consumer price"),
        "MACRO_BRAZIL": ("brazil", "lula", "brazilian"),
        "GC=F": ("gold price", "gold spot"),
        "CL=F": ("oil price", "crude oil", "wti", "brent"),
        "SECTOR_TECH": ("nvidia", "apple", "microsoft", "google", "meta", "ai stocks", "tech stocks"),
        "GEOPOLITICS": ("china", "taiwan", "russia", "ukraine", "trade war", "tariff"),
    }
)

RELEVANT_CATEGORIES = ("economics", "crypto", "business", "politics")

MARKETS_PER_QUERY = 50
TOP_MARKETS_PER_GROUP = 5


class PredictionMarketCollector(BaseCollector):
    """Collector for Polymarket markets, grouped by keyword.

    Args:
        keywords: Group key -> keyword tuple. Defaults to MARKET_KEYWORDS.
    """

    SOURCE_NAME = "polymarket"

    BASE_URL = "https://gamma-api.polymarket.com"
    MARKETS_ENDPOINT = "/markets"

    def __init__(
        self,
        keywords: Mapping[str, Sequence[str]] | None = None,
        log_file: Path | None = None,
        request_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(log_file=log_file, request_delay=request_delay, timeout=timeout)
        self.keywords = MappingProxyType(dict(keywords)) if keywords is not None else MARKET_KEYWORDS

    def fetch_markets(
        self,
        limit: int = 100,
        active: bool = True,
        closed: bool = False,
        category: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch one page of markets ordered by 24h volume.

        Returns an empty list on any failure.
        """
        params: dict[str, Any] = {
            "limit": limit,
            "active": str(active).lower(),
            "closed": str(closed).lower(),
            "order": "volume24hr",
            "ascending": "false",
        }
        if category:
            params["category"] = category

        try:
            data = self._get_json(f"{self.BASE_URL}{self.MARKETS_ENDPOINT}", params)
        except MarketLensError as exc:
            self.logger.warning("Polymarket fetch failed (category=%s): %s", category, exc)
            return []

        if not isinstance(data, list):
            self.logger.warning("Unexpected Polymarket payload type: %s", type(data).__name__)
            return []
        return [m for m in data if isinstance(m, dict)]

    def match(self, question: str, description: str = "") -> list[str]:
        """Keyword groups whose keywords occur in the market text."""
        text = f"{question} {description}".lower()
        return [key for key, words in self.keywords.items() if any(w in text for w in words)]

    def collect(self) -> dict[str, list[dict[str, Any]]]:
        """Fetch all relevant markets and bucket them by keyword group.

        Returns:
            Group key -> up to five market summaries, highest 24h volume first.
        """
        markets: list[dict[str, Any]] = []
        for category in RELEVANT_CATEGORIES:
            markets.extend(self.fetch_markets(limit=MARKETS_PER_QUERY, category=category))
        markets.extend(self.fetch_markets(limit=MARKETS_PER_QUERY))

        seen: set[Any] = set()
        unique = []
        for market in markets:
            market_id = market.get("id")
            if market_id is None or market_id in seen:
                continue
            seen.add(market_id)
            unique.append(market)

        grouped: dict[str, list[dict[str, Any]]] = {}
        matched_count = 0
        for market in unique:
            matched = self.match(market.get("question") or "", market.get("description") or "")
            if not matched:
                continue
            matched_count += 1
            summary = sentiment_from_market(market)
            for key in matched:
                grouped.setdefault(key, []).append(summary)

        for key, summaries in grouped.items():
            summaries.sort(key=lambda m: -(m.get("volume_24h") or 0.0))
            grouped[key] = summaries[:TOP_MARKETS_PER_GROUP]

        self.logger.info(
            "Matched %d of %d unique markets into %d groups",
            matched_count,
            len(unique),
            len(grouped),
        )
        return grouped

    def fetch_sentiment(self) -> dict[str, PredictionMarketSentiment]:
        """Aggregated sentiment per keyword group."""
        return {key: aggregate(markets) for key, markets in self.collect().items()}

    def health_check(self) -> bool:
        """Verify the Gamma API answers."""
        try:
            self._throttle()
            response = self._session.get(
                f"{self.BASE_URL}{self.MARKETS_ENDPOINT}", params={"limit": 1}, timeout=10
            )
            return bool(response.status_code == 200)
        except Exception as exc:
            self.logger.error("Polymarket health check failed: %s", exc)
            return False

"""Yahoo Finance market data collector.

Fetches daily OHLCV history and point-in-time fundamentals from Yahoo's public
JSON endpoints (no API key).

API Reference:
    Base URL:      https://query1.finance.yahoo.com
    History:       GET /v8/finance/chart/{ticker}?range=...&interval=...&events=history
    Fundamentals:  GET /v10/finance/quoteSummary/{ticker}?modules=...

History payload (abridged):
    {"chart": {"result": [{
        "meta": {...},
        "timestamp": [1704067200, ...],
        "indicators": {"quote": [{"open": [...], "high": [...], "low": [...],
                                  "close": [...], "volume": [...]}]}
    }]}}

Fundamentals payload wraps each number as {"raw": 1.23, "fmt": "1.23"},
grouped by module name (summaryDetail, defaultKeyStatistics, financialData).

Example:
    >>> collector = MarketDataCollector()
    >>> df = collector.history("PETR4.SA", range_="1y")
    >>> df[["date", "close"]].tail()
    >>> collector.fundamentals("PETR4.SA").pe_ratio
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

import pandas as pd

from marketlens.ingestion.collectors.base_collector import BaseCollector
from marketlens.shared.exceptions import PermanentFetchError, TransientFetchError
from marketlens.shared.utils import utc_date_from_timestamp

OHLCV_COLUMNS = ["date", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class Fundamentals:
    """Point-in-time fundamentals. `None` means "not reported", never zero."""

    market_cap: float | None = None
    pe_ratio: float | None = None
    forward_pe: float | None = None
    pb_ratio: float | None = None
    dividend_yield: float | None = None
    eps: float | None = None
    beta: float | None = None
    week_52_high: float | None = None
    week_52_low: float | None = None
    profit_margin: float | None = None
    roe: float | None = None
    debt_to_equity: float | None = None
    analyst_rating: str | None = None
    target_price: float | None = None
    num_analysts: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def raw_value(group: dict[str, Any] | None, key: str) -> Any:
    """Unwrap a quoteSummary field to a plain value.

    Yahoo returns most numbers as {"raw": ..., "fmt": ...}, an empty dict when
    unreported, and a few fields (recommendationKey) as bare scalars.
    """
    if not group:
        return None
    value = group.get(key)
    if isinstance(value, dict):
        return value.get("raw")
    return value


def _ratio_as_pct(group: dict[str, Any] | None, key: str) -> float | None:
    value = raw_value(group, key)
    if value is None:
        return None
    return value * 100 if value < 1 else value


class MarketDataCollector(BaseCollector):
    """Collector for Yahoo Finance daily history and fundamentals.

    A single instance is meant to be shared by every caller in a fetch cycle so
    that its throttle covers all requests made against Yahoo.
    """

    SOURCE_NAME = "yahoo"

    BASE_URL = "https://query1.finance.yahoo.com"
    CHART_ENDPOINT = "/v8/finance/chart/{ticker}"
    SUMMARY_ENDPOINT = "/v10/finance/quoteSummary/{ticker}"
    SUMMARY_MODULES = "summaryDetail,defaultKeyStatistics,financialData,recommendationTrend"

    VALID_RANGES = frozenset({"1d", "5d", "1mo", "3mo", "6mo", "1y", "2y", "5y", "10y", "ytd", "max"})
    VALID_INTERVALS = frozenset({"1d", "1wk", "1mo"})

    def __init__(
        self,
        log_file: Path | None = None,
        request_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(log_file=log_file, request_delay=request_delay, timeout=timeout)
        self._session.headers.update({"Accept": "application/json"})

    def history(self, ticker: str, range_: str = "max", interval: str = "1d") -> pd.DataFrame:
        """Fetch OHLCV history for a ticker.

        Args:
            ticker: Provider ticker, e.g. "PETR4.SA", "AAPL", "^BVSP".
            range_: Lookback window, one of VALID_RANGES.
            interval: Bar size, one of VALID_INTERVALS.

        Returns:
            DataFrame with columns date, open, high, low, close, volume,
            ascending by date. Rows without a close are dropped.

        Raises:
            ValueError: Empty ticker or unsupported range/interval.
            TransientFetchError: Provider kept failing after retries.
            PermanentFetchError: Unknown ticker or malformed payload.
        """
        self._validate(ticker, range_, interval)

        url = f"{self.BASE_URL}{self.CHART_ENDPOINT.format(ticker=quote(ticker, safe=''))}"
        data = self._get_json(url, {"range": range_, "interval": interval, "events": "history"})

        try:
            result = (data.get("chart", {}).get("result") or [None])[0]
        except (AttributeError, IndexError, TypeError) as exc:
            raise PermanentFetchError(f"Malformed chart payload for {ticker}") from exc
        if not result:
            raise PermanentFetchError(f"No data for {ticker}")

        return self._parse_chart(result)

    def fundamentals(self, ticker: str) -> Fundamentals:
        """Fetch fundamentals for a ticker.

        Failures are logged and yield an all-null snapshot; fundamentals are
        never worth failing an instrument over.
        """
        if not ticker:
            raise ValueError("ticker must be non-empty")

        url = f"{self.BASE_URL}{self.SUMMARY_ENDPOINT.format(ticker=quote(ticker, safe=''))}"
        try:
            data = self._get_json(url, {"modules": self.SUMMARY_MODULES})
            result = (data.get("quoteSummary", {}).get("result") or [{}])[0] or {}
        except (TransientFetchError, PermanentFetchError, AttributeError, TypeError) as exc:
            self.logger.warning("Fundamentals unavailable for %s: %s", ticker, exc)
            return Fundamentals()

        return self._parse_summary(result)

    def health_check(self) -> bool:
        """Verify the chart API answers for a liquid benchmark."""
        try:
            self._throttle()
            url = f"{self.BASE_URL}{self.CHART_ENDPOINT.format(ticker='%5EGSPC')}"
            response = self._session.get(
                url, params={"range": "1d", "interval": "1d"}, timeout=10
            )
            return bool(response.status_code == 200)
        except Exception as exc:
            self.logger.error("Yahoo health check failed: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _validate(self, ticker: str, range_: str, interval: str) -> None:
        if not ticker:
            raise ValueError("ticker must be non-empty")
        if range_ not in self.VALID_RANGES:
            raise ValueError(f"Unsupported range '{range_}'")
        if interval not in self.VALID_INTERVALS:
            raise ValueError(f"Unsupported interval '{interval}'")

    def _parse_chart(self, result: dict[str, Any]) -> pd.DataFrame:
        timestamps = result.get("timestamp") or []
        quote_block = ((result.get("indicators") or {}).get("quote") or [{}])[0] or {}

        def series(name: str) -> list:
            values = quote_block.get(name) or []
            return [values[i] if i < len(values) else None for i in range(len(timestamps))]

        df = pd.DataFrame(
            {
                "date": [utc_date_from_timestamp(ts) for ts in timestamps],
                "open": series("open"),
                "high": series("high"),
                "low": series("low"),
                "close": series("close"),
                "volume": series("volume"),
            },
            columns=OHLCV_COLUMNS,
        )
        for col in OHLCV_COLUMNS[1:]:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

        df = df.dropna(subset=["close"])
        return df.sort_values("date", kind="stable").reset_index(drop=True)

    def _parse_summary(self, result: dict[str, Any]) -> Fundamentals:
        summary = result.get("summaryDetail") or {}
        stats = result.get("defaultKeyStatistics") or {}
        financials = result.get("financialData") or {}

        rating = raw_value(financials, "recommendationKey")
        return Fundamentals(
            market_cap=raw_value(summary, "marketCap"),
            pe_ratio=raw_value(summary, "trailingPE"),
            forward_pe=raw_value(stats, "forwardPE"),
            pb_ratio=raw_value(summary, "priceToBook"),
            dividend_yield=_ratio_as_pct(summary, "dividendYield"),
            eps=raw_value(stats, "trailingEps"),
            beta=raw_value(stats, "beta"),
            week_52_high=raw_value(summary, "fiftyTwoWeekHigh"),
            week_52_low=raw_value(summary, "fiftyTwoWeekLow"),
            profit_margin=_ratio_as_pct(financials, "profitMargins"),
            roe=_ratio_as_pct(financials, "returnOnEquity"),
            debt_to_equity=raw_value(financials, "debtToEquity"),
            analyst_rating=str(rating) if rating is not None else None,
            target_price=raw_value(financials, "targetMeanPrice"),
            num_analysts=raw_value(financials, "numberOfAnalystOpinions"),
        )

"""Unit tests for the Yahoo Finance market data collector."""

from datetime import date
from unittest.mock import patch

import pandas as pd
import pytest

from marketlens.ingestion.collectors.market_data_collector import (
    Fundamentals,
    MarketDataCollector,
    raw_value,
)
from marketlens.shared.exceptions import PermanentFetchError

# ---------------------------------------------------------------------------
# Sample Data
# ---------------------------------------------------------------------------

# 2024-01-02 .. 2024-01-05, 14:00 UTC
TIMESTAMPS = [1704204000, 1704290400, 1704376800, 1704463200]

SAMPLE_CHART = {
    "chart": {
        "result": [
            {
                "meta": {"symbol": "PETR4.SA", "currency": "BRL"},
                "timestamp": TIMESTAMPS,
                "indicators": {
                    "quote": [
                        {
                            "open": [36.0, 36.5, None, 37.2],
                            "high": [36.8, 37.0, None, 37.9],
                            "low": [35.9, 36.1, None, 37.0],
                            "close": [36.5, 36.9, None, 37.8],
                            "volume": [41000000, 38500000, None, 52000000],
                        }
                    ]
                },
            }
        ],
        "error": None,
    }
}

SAMPLE_SUMMARY = {
    "quoteSummary": {
        "result": [
            {
                "summaryDetail": {
                    "marketCap": {"raw": 480000000000, "fmt": "480B"},
                    "trailingPE": {"raw": 4.2, "fmt": "4.20"},
                    "priceToBook": {"raw": 1.1, "fmt": "1.10"},
                    "dividendYield": {"raw": 0.145, "fmt": "14.50%"},
                    "fiftyTwoWeekHigh": {"raw": 42.1, "fmt": "42.10"},
                    "fiftyTwoWeekLow": {"raw": 30.5, "fmt": "30.50"},
                },
                "defaultKeyStatistics": {
                    "forwardPE": {"raw": 4.8, "fmt": "4.80"},
                    "trailingEps": {"raw": 8.9, "fmt": "8.90"},
                    "beta": {},
                },
                "financialData": {
                    "profitMargins": {"raw": 0.21, "fmt": "21%"},
                    "returnOnEquity": {"raw": 1.4, "fmt": "140%"},
                    "debtToEquity": {"raw": 75.3, "fmt": "75.30"},
                    "recommendationKey": "buy",
                    "targetMeanPrice": {"raw": 45.0, "fmt": "45.00"},
                    "numberOfAnalystOpinions": {"raw": 14, "fmt": "14"},
                },
            }
        ],
        "error": None,
    }
}


@pytest.fixture
def collector():
    return MarketDataCollector(request_delay=0)


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class TestHistory:
    def test_parses_chart(self, collector, response_factory):
        with patch.object(
            collector._session, "get", return_value=response_factory(SAMPLE_CHART)
        ) as mock_get:
            df = collector.history("PETR4.SA", range_="1y")

        assert list(df.columns) == ["date", "open", "high", "low", "close", "volume"]
        assert df["date"].tolist() == [date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5)]
        assert df["close"].tolist() == [36.5, 36.9, 37.8]
        assert df["volume"].iloc[-1] == 52000000

        params = mock_get.call_args.kwargs["params"]
        assert params == {"range": "1y", "interval": "1d", "events": "history"}
        assert mock_get.call_args.args[0].endswith("/v8/finance/chart/PETR4.SA")

    def test_missing_close_rows_dropped(self, collector, response_factory):
        with patch.object(collector._session, "get", return_value=response_factory(SAMPLE_CHART)):
            df = collector.history("PETR4.SA")

        assert len(df) == 3
        assert not df["close"].isna().any()

    def test_ticker_is_url_encoded(self, collector, response_factory):
        with patch.object(
            collector._session, "get", return_value=response_factory(SAMPLE_CHART)
        ) as mock_get:
            collector.history("^BVSP")

        assert mock_get.call_args.args[0].endswith("/chart/%5EBVSP")

    def test_empty_result_is_permanent(self, collector, response_factory):
        payload = {"chart": {"result": None, "error": {"code": "Not Found"}}}
        with patch.object(collector._session, "get", return_value=response_factory(payload)):
            with pytest.raises(PermanentFetchError, match="No data"):
                collector.history("NOPE3.SA")

    def test_no_timestamps_gives_empty_frame(self, collector, response_factory):
        payload = {"chart": {"result": [{"meta": {}, "indicators": {"quote": [{}]}}]}}
        with patch.object(collector._session, "get", return_value=response_factory(payload)):
            df = collector.history("AAPL")

        assert isinstance(df, pd.DataFrame)
        assert df.empty

    @pytest.mark.parametrize(
        "ticker, range_, interval",
        [("", "max", "1d"), ("AAPL", "2d", "1d"), ("AAPL", "max", "1h")],
    )
    def test_invalid_arguments_rejected_before_io(self, collector, ticker, range_, interval):
        with patch.object(collector._session, "get") as mock_get:
            with pytest.raises(ValueError):
                collector.history(ticker, range_=range_, interval=interval)

        mock_get.assert_not_called()


# ---------------------------------------------------------------------------
# Fundamentals
# ---------------------------------------------------------------------------


class TestFundamentals:
    def test_parses_summary(self, collector, response_factory):
        with patch.object(
            collector._session, "get", return_value=response_factory(SAMPLE_SUMMARY)
        ) as mock_get:
            f = collector.fundamentals("PETR4.SA")

        assert f.market_cap == 480000000000
        assert f.pe_ratio == 4.2
        assert f.forward_pe == 4.8
        assert f.pb_ratio == 1.1
        assert f.eps == 8.9
        assert f.week_52_high == 42.1
        assert f.week_52_low == 30.5
        assert f.debt_to_equity == 75.3
        assert f.analyst_rating == "buy"
        assert f.target_price == 45.0
        assert f.num_analysts == 14
        assert "summaryDetail" in mock_get.call_args.kwargs["params"]["modules"]

    def test_ratios_below_one_become_percentages(self, collector, response_factory):
        with patch.object(collector._session, "get", return_value=response_factory(SAMPLE_SUMMARY)):
            f = collector.fundamentals("PETR4.SA")

        assert f.dividend_yield == pytest.approx(14.5)
        assert f.profit_margin == pytest.approx(21.0)
        # Already >= 1: left as is
        assert f.roe == pytest.approx(1.4)

    def test_unreported_fields_are_none(self, collector, response_factory):
        with patch.object(collector._session, "get", return_value=response_factory(SAMPLE_SUMMARY)):
            f = collector.fundamentals("PETR4.SA")

        assert f.beta is None

    def test_failure_returns_all_null(self, collector, response_factory, caplog):
        with patch.object(collector._session, "get", return_value=response_factory({}, status=404)):
            f = collector.fundamentals("PETR4.SA")

        assert f == Fundamentals()
        assert all(v is None for v in f.to_dict().values())

    def test_empty_result_returns_all_null(self, collector, response_factory):
        payload = {"quoteSummary": {"result": [], "error": None}}
        with patch.object(collector._session, "get", return_value=response_factory(payload)):
            assert collector.fundamentals("PETR4.SA") == Fundamentals()


class TestRawValue:
    def test_unwraps_raw(self):
        assert raw_value({"pe": {"raw": 9.5, "fmt": "9.50"}}, "pe") == 9.5

    def test_bare_scalar(self):
        assert raw_value({"recommendationKey": "hold"}, "recommendationKey") == "hold"

    def test_missing(self):
        assert raw_value({"pe": {}}, "pe") is None
        assert raw_value({}, "pe") is None
        assert raw_value(None, "pe") is None


class TestHealthCheck:
    def test_health_check_success(self, collector, response_factory):
        with patch.object(collector._session, "get", return_value=response_factory({})):
            assert collector.health_check() is True

    def test_health_check_failure(self, collector):
        with patch.object(collector._session, "get", side_effect=ConnectionError("down")):
            assert collector.health_check() is False

    def test_health_check_is_throttled(self, collector, response_factory):
        with patch.object(collector, "_throttle") as mock_throttle:
            with patch.object(collector._session, "get", return_value=response_factory({})):
                collector.health_check()

        mock_throttle.assert_called_once()

"""Tests for signal detection and the signal board."""

import dataclasses
from types import MappingProxyType

import pytest

from marketlens.analytics.signals import THRESHOLDS, SignalResult, detect_signals, signal_board


class TestDetectSignals:
    def test_empty_row_is_neutral(self):
        result = detect_signals({})
        assert result.summary == "neutral"
        assert result.as_labels() == []
        assert result.golden_cross is False
        assert result.death_cross is False

    def test_rsi_thresholds(self):
        assert detect_signals({"rsi_14": 29.9}).rsi_oversold is True
        assert detect_signals({"rsi_14": 30.0}).rsi_oversold is False
        assert detect_signals({"rsi_14": 70.1}).rsi_overbought is True
        assert detect_signals({"rsi_14": 70.0}).rsi_overbought is False

    def test_near_52w_high(self):
        assert detect_signals({"pct_from_52w_high": -4.9}).near_52w_high is True
        assert detect_signals({"pct_from_52w_high": -5.0}).near_52w_high is True
        assert detect_signals({"pct_from_52w_high": -5.1}).near_52w_high is False

    def test_near_52w_low(self):
        assert detect_signals({"close": 105.0, "week_52_low": 100.0}).near_52w_low is True
        assert detect_signals({"close": 106.0, "week_52_low": 100.0}).near_52w_low is False
        assert detect_signals({"close": 1.0, "week_52_low": 0.0}).near_52w_low is False

    def test_near_52w_low_falls_back_to_brl_price(self):
        assert detect_signals({"price_brl": 101.0, "week_52_low": 100.0}).near_52w_low is True

    def test_volume_spike(self):
        assert detect_signals({"volume_ratio": 2.0}).volume_spike is True
        assert detect_signals({"volume_ratio": 1.99}).volume_spike is False

    def test_crosses(self):
        assert detect_signals({"ma_50_above_200": True}).golden_cross is True
        assert detect_signals({"ma_50_above_200": False}).death_cross is True
        assert detect_signals({"ma_50_above_200": None}).death_cross is False

    def test_trends(self):
        up = detect_signals({"above_ma_50": True, "above_ma_200": True})
        down = detect_signals({"above_ma_50": False, "above_ma_200": False})
        mixed = detect_signals({"above_ma_50": True, "above_ma_200": False})
        assert up.bullish_trend and not up.bearish_trend
        assert down.bearish_trend and not down.bullish_trend
        assert not mixed.bullish_trend and not mixed.bearish_trend

    def test_news(self):
        assert detect_signals({"news_sentiment_combined": 0.31}).positive_news is True
        assert detect_signals({"news_sentiment_combined": 0.3}).positive_news is False
        assert detect_signals({"news_sentiment_combined": -0.31}).negative_news is True

    def test_bullish_three_versus_one(self):
        # bullish: oversold, golden cross, above 50 / bearish: below 200
        row = {
            "rsi_14": 25.0,
            "ma_50_above_200": True,
            "above_ma_50": True,
            "above_ma_200": False,
        }
        assert detect_signals(row).summary == "bullish"

    def test_bearish_summary(self):
        row = {
            "rsi_14": 80.0,
            "pct_from_52w_high": -1.0,
            "ma_50_above_200": False,
            "above_ma_50": False,
            "above_ma_200": False,
        }
        result = detect_signals(row)
        assert result.summary == "bearish"
        assert result.bearish_trend is True

    def test_tied_counts_are_neutral(self):
        row = {"rsi_14": 25.0, "above_ma_50": True, "above_ma_200": True, "pct_from_52w_high": -1.0,
               "ma_50_above_200": False, "close": 200.0, "week_52_low": 100.0, "volume_ratio": 1.0}
        # bullish 3 (oversold, above 50, above 200) vs bearish 2 (near high, death cross)
        assert detect_signals(row).summary == "bullish"
        row["rsi_14"] = 75.0
        # bullish 2 vs bearish 3
        assert detect_signals(row).summary == "bearish"
        row["rsi_14"] = 50.0
        # bullish 2 vs bearish 2
        assert detect_signals(row).summary == "neutral"

    @pytest.mark.parametrize("rsi", [10.0, 50.0, 90.0])
    def test_never_bullish_and_bearish(self, rsi):
        row = {"rsi_14": rsi, "ma_50_above_200": True, "above_ma_50": True, "above_ma_200": True}
        assert detect_signals(row).summary in {"bullish", "bearish", "neutral"}

    def test_substitute_thresholds(self):
        strict = MappingProxyType({**THRESHOLDS, "rsi_oversold": 20})
        assert detect_signals({"rsi_14": 25.0}, strict).rsi_oversold is False
        assert detect_signals({"rsi_14": 25.0}).rsi_oversold is True

    def test_thresholds_immutable(self):
        with pytest.raises(TypeError):
            THRESHOLDS["rsi_oversold"] = 10  # type: ignore[index]


class TestSignalResult:
    @pytest.fixture
    def result(self):
        return detect_signals(
            {
                "rsi_14": 25.0,
                "ma_50_above_200": True,
                "above_ma_50": True,
                "above_ma_200": True,
                "volume_ratio": 3.0,
                "news_sentiment_combined": 0.5,
            }
        )

    def test_frozen(self, result):
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.summary = "bearish"  # type: ignore[misc]

    def test_db_flags(self, result):
        flags = result.as_db_flags()
        assert flags == {
            "signal_rsi_oversold": True,
            "signal_rsi_overbought": False,
            "signal_52w_high": False,
            "signal_52w_low": False,
            "signal_volume_spike": True,
            "signal_golden_cross": True,
            "signal_death_cross": False,
            "signal_bullish_trend": True,
            "signal_bearish_trend": False,
            "signal_summary": "bullish",
        }

    def test_labels(self, result):
        assert result.as_labels() == [
            "RSI_OVERSOLD",
            "GOLDEN_CROSS",
            "BULLISH_TREND",
            "VOLUME_SPIKE",
            "POSITIVE_NEWS",
        ]


class TestSignalBoard:
    def test_groups_equities(self):
        rows = [
            {"ticker": "PETR4.SA", "category": "domestic_equity", "signal_summary": "bullish",
             "signal_rsi_oversold": True, "rsi_14": 24.0, "signal_52w_low": True},
            {"ticker": "AAPL", "category": "foreign_equity", "signal_summary": "bearish",
             "signal_rsi_overbought": True, "rsi_14": 81.0, "signal_52w_high": True,
             "signal_volume_spike": True},
            {"ticker": "BTC-USD", "category": "crypto", "signal_summary": "bullish"},
        ]
        board = signal_board(rows)

        assert board["bullish"] == ["PETR4.SA"]
        assert board["bearish"] == ["AAPL"]
        assert board["rsi_oversold"] == [{"ticker": "PETR4.SA", "rsi": 24.0}]
        assert board["rsi_overbought"] == [{"ticker": "AAPL", "rsi": 81.0}]
        assert board["near_52w_low"] == ["PETR4.SA"]
        assert board["near_52w_high"] == ["AAPL"]
        assert board["volume_spike"] == ["AAPL"]

    def test_empty(self):
        assert all(v == [] for v in signal_board([]).values())


def test_signal_result_is_dataclass():
    assert dataclasses.is_dataclass(SignalResult)

"""Tests for technical indicators and reference prices."""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from marketlens.analytics.technicals import (
    compute_technicals,
    price_at,
    price_changes,
    reference_prices,
    rsi,
    volatility,
)


class TestRSI:
    def test_short_series_is_null(self):
        assert rsi(pd.Series([float(i) for i in range(14)])) is None

    def test_all_gains_is_100(self):
        assert rsi(pd.Series([float(i) for i in range(1, 16)])) == 100.0

    def test_all_losses_is_0(self):
        assert rsi(pd.Series([float(i) for i in range(15, 0, -1)])) == pytest.approx(0.0)

    def test_mixed_series(self):
        # Alternating +2 / -1 over 14 deltas: 7 gains of 2, 7 losses of 1
        closes = [100.0]
        for i in range(14):
            closes.append(closes[-1] + (2 if i % 2 == 0 else -1))
        expected = 100 - 100 / (1 + (14 / 14) / (7 / 14))
        assert rsi(pd.Series(closes)) == pytest.approx(expected)

    def test_uses_only_last_15_closes(self):
        noisy_prefix = [50.0, 10.0, 80.0, 5.0]
        rising = [float(i) for i in range(100, 115)]
        assert rsi(pd.Series(noisy_prefix + rising)) == 100.0


class TestVolatility:
    def test_needs_31_closes(self):
        assert volatility(pd.Series([100.0] * 30)) is None

    def test_constant_prices_zero(self):
        assert volatility(pd.Series([100.0] * 31)) == pytest.approx(0.0)

    def test_population_std_of_returns(self):
        closes = pd.Series([100.0 * (1.01 if i % 2 else 0.99) ** i for i in range(40)])
        returns = closes.iloc[-31:].pct_change().dropna().to_numpy()
        assert volatility(closes) == pytest.approx(np.std(returns) * 100)


class TestComputeTechnicals:
    def test_moving_averages(self, history_factory):
        history = history_factory([float(i) for i in range(1, 201)])
        result = compute_technicals(history, close=200.0)

        assert result["ma_50"] == pytest.approx(175.5)
        assert result["ma_200"] == pytest.approx(100.5)
        assert result["above_ma_50"] is True
        assert result["above_ma_200"] is True
        assert result["ma_50_above_200"] is True

    def test_short_history_omits_long_indicators(self, history_factory):
        history = history_factory([100.0] * 60)
        result = compute_technicals(history, close=90.0)

        assert result["ma_50"] == pytest.approx(100.0)
        assert result["above_ma_50"] is False
        assert "ma_200" not in result
        assert "above_ma_200" not in result
        assert "ma_50_above_200" not in result

    def test_tiny_history(self, history_factory):
        result = compute_technicals(history_factory([100.0] * 10, volumes=[1.0] * 10), close=100.0)
        assert result == {}

    def test_volume_ratio(self, history_factory):
        volumes = [1000.0] * 19 + [3000.0]
        result = compute_technicals(history_factory([10.0] * 20, volumes=volumes), close=10.0)

        assert result["avg_volume_20d"] == pytest.approx(1100.0)
        assert result["volume_ratio"] == pytest.approx(3000.0 / 1100.0)

    def test_volume_ratio_skips_missing_volumes(self, history_factory):
        volumes = [None] * 5 + [1000.0] * 19
        result = compute_technicals(history_factory([10.0] * 24, volumes=volumes), close=10.0)
        assert "volume_ratio" not in result

    def test_zero_volume_average(self, history_factory):
        result = compute_technicals(history_factory([10.0] * 25, volumes=[0.0] * 25), close=10.0)
        assert result["avg_volume_20d"] == 0.0
        assert "volume_ratio" not in result

    def test_does_not_modify_history(self, history_factory):
        history = history_factory([float(i) for i in range(1, 60)])
        snapshot = history.copy()
        compute_technicals(history, close=10.0)
        pd.testing.assert_frame_equal(history, snapshot)


class TestReferencePrices:
    @pytest.fixture
    def history(self):
        return pd.DataFrame(
            {
                "date": [
                    date(2020, 6, 3),
                    date(2024, 12, 30),
                    date(2025, 1, 2),
                    date(2025, 2, 12),
                    date(2025, 3, 7),
                    date(2025, 3, 13),
                    date(2025, 3, 14),
                ],
                "open": [1.0] * 7,
                "high": [1.0] * 7,
                "low": [1.0] * 7,
                "close": [20.0, 40.0, 41.0, 44.0, 47.0, 49.0, 50.0],
                "volume": [1.0] * 7,
            }
        )

    def test_price_at_last_on_or_before(self, history):
        assert price_at(history, date(2025, 3, 10)) == 47.0
        assert price_at(history, date(2025, 3, 7)) == 47.0
        assert price_at(history, date(2019, 1, 1)) is None

    def test_reference_prices(self, history):
        prices = reference_prices(history, date(2025, 3, 14))

        assert prices["price_1d"] == 49.0
        assert prices["price_1w"] == 47.0
        assert prices["price_1m"] == 44.0
        assert prices["price_ytd"] == 40.0
        assert prices["price_5y"] is None
        assert prices["price_all"] == 20.0

    def test_price_changes(self, history):
        prices = reference_prices(history, date(2025, 3, 14))
        changes = price_changes(50.0, prices)

        assert changes["change_1d"] == pytest.approx(50 / 49 * 100 - 100)
        assert changes["change_ytd"] == pytest.approx(25.0)
        assert changes["change_all"] == pytest.approx(150.0)
        assert changes["change_5y"] is None

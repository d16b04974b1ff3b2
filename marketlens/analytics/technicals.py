"""Technical indicators and reference prices over a daily OHLCV history.

All functions take the ascending history DataFrame produced by
MarketDataCollector.history() and never modify it. An indicator whose
lookback is not covered by the history is left out of the result
(ComputationSkip policy): callers see it as missing, not as zero.
"""

from datetime import date, timedelta
from typing import Any

import numpy as np
import pandas as pd

from marketlens.shared.utils import change_pct

MA_SHORT = 50
MA_LONG = 200
RSI_PERIOD = 14
VOLATILITY_WINDOW = 30
VOLUME_WINDOW = 20

# Lookbacks for reference prices, in calendar days
REFERENCE_OFFSETS = {"1d": 1, "1w": 7, "1m": 30, "5y": 5 * 365}
CHANGE_PERIODS = ("1d", "1w", "1m", "ytd", "5y", "all")


def rsi(closes: pd.Series, period: int = RSI_PERIOD) -> float | None:
    """Relative Strength Index over the last `period` deltas.

    Gains and losses are each summed and divided by `period` (simple average,
    not Wilder smoothing). A window without losses gives 100.
    """
    if len(closes) < period + 1:
        return None

    deltas = closes.iloc[-(period + 1) :].diff().dropna()
    avg_gain = deltas[deltas > 0].sum() / period
    avg_loss = -deltas[deltas < 0].sum() / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))


def volatility(closes: pd.Series, window: int = VOLATILITY_WINDOW) -> float | None:
    """Population std of the last `window` daily simple returns, in percent."""
    if len(closes) < window + 1:
        return None
    returns = closes.iloc[-(window + 1) :].pct_change().dropna()
    return float(np.std(returns.to_numpy(), ddof=0) * 100)


def price_at(history: pd.DataFrame, target: date) -> float | None:
    """Close of the last session on or before `target`."""
    eligible = history.loc[history["date"] <= target, "close"]
    if eligible.empty:
        return None
    return float(eligible.iloc[-1])


def compute_technicals(history: pd.DataFrame, close: float) -> dict[str, Any]:
    """Moving averages, RSI, volatility and volume statistics.

    Args:
        history: Ascending OHLCV history.
        close: Current close to compare against the moving averages.

    Returns:
        Mapping with any of ma_50, above_ma_50, ma_200, above_ma_200,
        ma_50_above_200, rsi_14, volatility_30d, avg_volume_20d and
        volume_ratio. Keys whose lookback is not met are absent.
    """
    closes = history["close"].reset_index(drop=True)
    result: dict[str, Any] = {}

    if len(closes) >= MA_SHORT:
        ma_50 = float(closes.iloc[-MA_SHORT:].mean())
        result["ma_50"] = ma_50
        result["above_ma_50"] = bool(close > ma_50)

    if len(closes) >= MA_LONG:
        ma_200 = float(closes.iloc[-MA_LONG:].mean())
        result["ma_200"] = ma_200
        result["above_ma_200"] = bool(close > ma_200)
        if "ma_50" in result:
            result["ma_50_above_200"] = bool(result["ma_50"] > ma_200)

    rsi_14 = rsi(closes)
    if rsi_14 is not None:
        result["rsi_14"] = rsi_14

    vol_30d = volatility(closes)
    if vol_30d is not None:
        result["volatility_30d"] = vol_30d

    volumes = history["volume"].dropna()
    if len(volumes) >= VOLUME_WINDOW:
        avg_volume = float(volumes.iloc[-VOLUME_WINDOW:].mean())
        result["avg_volume_20d"] = avg_volume
        if avg_volume > 0:
            result["volume_ratio"] = float(volumes.iloc[-1]) / avg_volume

    return result


def reference_prices(history: pd.DataFrame, as_of: date) -> dict[str, float | None]:
    """Reference closes for each change period, relative to `as_of`."""
    prices: dict[str, float | None] = {
        f"price_{period}": price_at(history, as_of - timedelta(days=days))
        for period, days in REFERENCE_OFFSETS.items()
    }
    prices["price_ytd"] = price_at(history, date(as_of.year, 1, 1))
    prices["price_all"] = float(history["close"].iloc[0]) if not history.empty else None
    return prices


def price_changes(close: float | None, prices: dict[str, float | None]) -> dict[str, float | None]:
    """Percentage change from each reference price to `close`."""
    return {
        f"change_{period}": change_pct(close, prices.get(f"price_{period}"))
        for period in CHANGE_PERIODS
    }

"""Trading signal detection.

Single source of truth for signals: the fetch pipeline stores the flags
returned here on each quote row, and the watchlist and signal board read
those flags back.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from marketlens.shared.catalog import EQUITY_CATEGORIES

THRESHOLDS: Mapping[str, float] = MappingProxyType(
    {
        "rsi_oversold": 30,
        "rsi_overbought": 70,
        "volume_spike_ratio": 2.0,
        "near_52w_high_pct": -5,
        "near_52w_low_pct": 5,
        "news_positive": 0.3,
        "news_negative": -0.3,
        "bullish_min_count": 3,
        "bearish_min_count": 3,
    }
)


@dataclass(frozen=True)
class SignalResult:
    rsi_oversold: bool
    rsi_overbought: bool
    near_52w_high: bool
    near_52w_low: bool
    volume_spike: bool
    golden_cross: bool
    death_cross: bool
    bullish_trend: bool
    bearish_trend: bool
    positive_news: bool
    negative_news: bool
    summary: str

    def as_db_flags(self) -> dict[str, Any]:
        """Row columns persisted for this result."""
        return {
            "signal_rsi_oversold": self.rsi_oversold,
            "signal_rsi_overbought": self.rsi_overbought,
            "signal_52w_high": self.near_52w_high,
            "signal_52w_low": self.near_52w_low,
            "signal_volume_spike": self.volume_spike,
            "signal_golden_cross": self.golden_cross,
            "signal_death_cross": self.death_cross,
            "signal_bullish_trend": self.bullish_trend,
            "signal_bearish_trend": self.bearish_trend,
            "signal_summary": self.summary,
        }

    def as_labels(self) -> list[str]:
        """Upper-case labels of the signals that fired."""
        fired = [
            ("RSI_OVERSOLD", self.rsi_oversold),
            ("RSI_OVERBOUGHT", self.rsi_overbought),
            ("GOLDEN_CROSS", self.golden_cross),
            ("DEATH_CROSS", self.death_cross),
            ("BULLISH_TREND", self.bullish_trend),
            ("BEARISH_TREND", self.bearish_trend),
            ("NEAR_52W_HIGH", self.near_52w_high),
            ("NEAR_52W_LOW", self.near_52w_low),
            ("VOLUME_SPIKE", self.volume_spike),
            ("POSITIVE_NEWS", self.positive_news),
            ("NEGATIVE_NEWS", self.negative_news),
        ]
        return [label for label, on in fired if on]


def _flag(value: Any) -> bool | None:
    """Tri-state flag: None stays None, anything else is truthiness."""
    return None if value is None else bool(value)


def detect_signals(
    row: Mapping[str, Any], thresholds: Mapping[str, float] = THRESHOLDS
) -> SignalResult:
    """Derive the signal set for one quote row.

    Args:
        row: Quote row with technicals, fundamentals and news fields. Missing
            fields leave the dependent signals off.
        thresholds: Threshold table, THRESHOLDS by default.

    Returns:
        A new SignalResult.
    """
    rsi = row.get("rsi_14")
    rsi_oversold = rsi is not None and rsi < thresholds["rsi_oversold"]
    rsi_overbought = rsi is not None and rsi > thresholds["rsi_overbought"]

    pct_from_high = row.get("pct_from_52w_high")
    near_52w_high = pct_from_high is not None and pct_from_high >= thresholds["near_52w_high_pct"]

    low_52w = row.get("week_52_low")
    close = row.get("close")
    if close is None:
        close = row.get("price_brl")
    near_52w_low = (
        low_52w is not None
        and close is not None
        and low_52w > 0
        and (close - low_52w) / low_52w * 100 <= thresholds["near_52w_low_pct"]
    )

    volume_ratio = row.get("volume_ratio")
    volume_spike = volume_ratio is not None and volume_ratio >= thresholds["volume_spike_ratio"]

    ma_cross = _flag(row.get("ma_50_above_200"))
    golden_cross = ma_cross is True
    death_cross = ma_cross is False

    above_50 = _flag(row.get("above_ma_50"))
    above_200 = _flag(row.get("above_ma_200"))
    bullish_trend = above_50 is True and above_200 is True
    bearish_trend = above_50 is False and above_200 is False

    news = row.get("news_sentiment_combined")
    positive_news = news is not None and news > thresholds["news_positive"]
    negative_news = news is not None and news < thresholds["news_negative"]

    bullish_count = sum(
        [rsi_oversold, near_52w_low, golden_cross, above_50 is True, above_200 is True]
    )
    bearish_count = sum(
        [rsi_overbought, near_52w_high, death_cross, above_50 is False, above_200 is False]
    )

    if bullish_count >= thresholds["bullish_min_count"] and bullish_count > bearish_count:
        summary = "bullish"
    elif bearish_count >= thresholds["bearish_min_count"] and bearish_count > bullish_count:
        summary = "bearish"
    else:
        summary = "neutral"

    return SignalResult(
        rsi_oversold=rsi_oversold,
        rsi_overbought=rsi_overbought,
        near_52w_high=near_52w_high,
        near_52w_low=near_52w_low,
        volume_spike=volume_spike,
        golden_cross=golden_cross,
        death_cross=death_cross,
        bullish_trend=bullish_trend,
        bearish_trend=bearish_trend,
        positive_news=positive_news,
        negative_news=negative_news,
        summary=summary,
    )


def signal_board(rows: Iterable[Mapping[str, Any]]) -> dict[str, list]:
    """Group equity rows by the signals stored on them.

    Returns:
        Mapping of bullish, bearish, near_52w_high, near_52w_low and
        volume_spike to ticker lists, and rsi_oversold / rsi_overbought to
        {"ticker", "rsi"} entries.
    """
    board: dict[str, list] = {
        "bullish": [],
        "bearish": [],
        "rsi_oversold": [],
        "rsi_overbought": [],
        "near_52w_high": [],
        "near_52w_low": [],
        "volume_spike": [],
    }

    for row in rows:
        if row.get("category") not in EQUITY_CATEGORIES:
            continue
        ticker = row.get("ticker")

        if row.get("signal_summary") == "bullish":
            board["bullish"].append(ticker)
        elif row.get("signal_summary") == "bearish":
            board["bearish"].append(ticker)

        if row.get("signal_rsi_oversold"):
            board["rsi_oversold"].append({"ticker": ticker, "rsi": row.get("rsi_14")})
        if row.get("signal_rsi_overbought"):
            board["rsi_overbought"].append({"ticker": ticker, "rsi": row.get("rsi_14")})
        if row.get("signal_52w_high"):
            board["near_52w_high"].append(ticker)
        if row.get("signal_52w_low"):
            board["near_52w_low"].append(ticker)
        if row.get("signal_volume_spike"):
            board["volume_spike"].append(ticker)

    return board

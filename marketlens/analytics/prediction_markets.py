"""Prediction-market sentiment aggregation.

Turns raw Polymarket markets into per-market summaries, aggregates them per
keyword group with 24h-volume weighting, and copies the result onto quote rows.
"""

import json
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

BULLISH_PROBABILITY = 0.6
BEARISH_PROBABILITY = 0.4
LABEL_THRESHOLD = 0.2
# log10 of the 24h volume at which confidence saturates
CONFIDENCE_SCALE = 7.0


@dataclass(frozen=True)
class PredictionMarketSentiment:
    """Volume-weighted sentiment of one keyword group."""

    score: float | None
    label: str | None
    confidence: float | None
    market_count: int
    total_volume: float
    top_market: Mapping[str, Any] | None = None


def _parse_json_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def sentiment_from_market(market: Mapping[str, Any]) -> dict[str, Any]:
    """Summarise one market: its yes probability and directional sentiment.

    The yes price is the "Yes" (or "yes") outcome's price, falling back to the
    first listed price. An unparsable price gives probability and sentiment None.
    """
    outcomes = _parse_json_list(market.get("outcomes"))
    prices = _parse_json_list(market.get("outcomePrices"))
    price_map = dict(zip(outcomes, prices))

    raw_yes = price_map.get("Yes")
    if raw_yes is None:
        raw_yes = price_map.get("yes")
    if raw_yes is None and prices:
        raw_yes = prices[0]
    yes_prob = _to_float(raw_yes)

    if yes_prob is None:
        sentiment = None
    elif yes_prob >= BULLISH_PROBABILITY:
        sentiment = "bullish"
    elif yes_prob <= BEARISH_PROBABILITY:
        sentiment = "bearish"
    else:
        sentiment = "neutral"

    return {
        "question": market.get("question"),
        "yes_probability": yes_prob,
        "sentiment": sentiment,
        "volume_24h": _to_float(market.get("volume24hr")),
        "volume_total": _to_float(market.get("volumeNum")),
    }


def aggregate(markets: Sequence[Mapping[str, Any]]) -> PredictionMarketSentiment:
    """Aggregate market summaries into a single group sentiment.

    Only markets with a probability and positive 24h volume carry weight.
    Score is (weighted mean yes probability - 0.5) * 2, so it lies in [-1, 1].
    """
    if not markets:
        return PredictionMarketSentiment(
            score=None, label=None, confidence=None, market_count=0, total_volume=0.0
        )

    total_volume = 0.0
    weighted_prob = 0.0
    for market in markets:
        volume = market.get("volume_24h") or 0.0
        prob = market.get("yes_probability")
        if prob is None or volume <= 0:
            continue
        weighted_prob += prob * volume
        total_volume += volume

    score = label = confidence = None
    if total_volume > 0:
        raw_score = (weighted_prob / total_volume - 0.5) * 2
        if raw_score >= LABEL_THRESHOLD:
            label = "bullish"
        elif raw_score <= -LABEL_THRESHOLD:
            label = "bearish"
        else:
            label = "neutral"
        score = round(raw_score, 3)
        confidence = round(min(1.0, math.log10(total_volume + 1) / CONFIDENCE_SCALE), 3)

    return PredictionMarketSentiment(
        score=score,
        label=label,
        confidence=confidence,
        market_count=len(markets),
        total_volume=total_volume,
        top_market=markets[0],
    )


def polymarket_fields(sentiment: PredictionMarketSentiment) -> dict[str, Any]:
    """Row columns describing a group sentiment."""
    top = sentiment.top_market or {}
    return {
        "polymarket_score": sentiment.score,
        "polymarket_label": sentiment.label,
        "polymarket_confidence": sentiment.confidence,
        "polymarket_market_count": sentiment.market_count,
        "polymarket_volume": sentiment.total_volume,
        "polymarket_top_question": top.get("question"),
        "polymarket_top_probability": top.get("yes_probability"),
    }


def attach_prediction_markets(
    rows: Iterable[Mapping[str, Any]], sentiments: Mapping[str, PredictionMarketSentiment]
) -> list[dict[str, Any]]:
    """Copy group sentiment onto rows whose ticker is a keyword-group key.

    Rows are returned as new mappings; unmatched rows are copied unchanged.
    """
    attached = []
    for row in rows:
        sentiment = sentiments.get(row.get("ticker"))
        if sentiment is None:
            attached.append(dict(row))
        else:
            attached.append({**row, **polymarket_fields(sentiment)})
    return attached

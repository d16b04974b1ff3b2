"""Multi-factor watchlist scoring.

Each equity row earns or loses points for technical, trend, news and
performance factors. High scorers form the watchlist, strongly negative
scorers the avoid list. Nothing here is persisted.
"""

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from marketlens.shared.catalog import EQUITY_CATEGORIES

DEFAULT_MIN_SCORE = 3.0
DEFAULT_MAX_ITEMS = 12
AVOID_SCORE = -2.0


@dataclass(frozen=True)
class WatchlistEntry:
    ticker: str
    name: str | None
    score: float
    rsi_14: float | None
    change_ytd: float | None
    news_sentiment: float | None
    signal_summary: str | None
    reasons: tuple[str, ...] = field(default_factory=tuple)
    risk_flags: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["reasons"] = list(self.reasons)
        data["risk_flags"] = list(self.risk_flags)
        return data


def score_row(row: Mapping[str, Any]) -> WatchlistEntry:
    """Score a single row. Category filtering is the caller's job."""
    score = 0.0
    reasons: list[str] = []
    risks: list[str] = []

    rsi = row.get("rsi_14")
    if rsi is not None:
        if rsi < 25:
            score += 3.0
            reasons.append("rsi_extreme_oversold")
        elif rsi < 30:
            score += 2.0
            reasons.append("rsi_oversold")
        elif rsi > 80:
            score -= 3.0
            risks.append("rsi_extreme_overbought")
        elif rsi > 70:
            score -= 2.0
            risks.append("rsi_overbought")

    summary = row.get("signal_summary")
    if summary == "bullish":
        score += 2.0
        reasons.append("bullish_trend")
    elif summary == "bearish":
        score -= 2.0
        risks.append("bearish_trend")

    if row.get("signal_golden_cross"):
        score += 1.0
        reasons.append("golden_cross")
    if row.get("above_ma_50"):
        score += 0.5
        reasons.append("above_ma50")
    if row.get("above_ma_200"):
        score += 0.5
        reasons.append("above_ma200")
    if row.get("signal_52w_low"):
        score += 1.0
        reasons.append("near_52w_low")
    if row.get("signal_52w_high"):
        score -= 1.0
        risks.append("near_52w_high")
    if row.get("signal_volume_spike"):
        score += 0.5
        reasons.append("volume_spike")

    news = row.get("news_sentiment_combined")
    if news is not None:
        if news >= 0.4:
            score += 2.0
            reasons.append("news_positive_strong")
        elif news >= 0.2:
            score += 1.0
            reasons.append("news_positive")
        elif news <= -0.4:
            score -= 2.0
            risks.append("news_negative_strong")
        elif news <= -0.2:
            score -= 1.0
            risks.append("news_negative")

    change_ytd = row.get("change_ytd")
    if change_ytd is not None:
        if change_ytd >= 20:
            score += 1.0
            reasons.append("ytd_strong")
        elif change_ytd <= -20:
            score -= 1.0
            risks.append("ytd_weak")

    return WatchlistEntry(
        ticker=row.get("ticker"),
        name=row.get("name"),
        score=round(score, 2),
        rsi_14=rsi,
        change_ytd=change_ytd,
        news_sentiment=news,
        signal_summary=summary,
        reasons=tuple(reasons),
        risk_flags=tuple(risks),
    )


def build_watchlist(
    rows: Iterable[Mapping[str, Any]],
    min_score: float = DEFAULT_MIN_SCORE,
    max_items: int = DEFAULT_MAX_ITEMS,
) -> dict[str, list[WatchlistEntry]]:
    """Rank equity rows into a watchlist and an avoid list.

    Args:
        rows: Quote rows; only domestic and foreign equities are scored.
        min_score: Minimum score to make the watchlist.
        max_items: Maximum length of each list.

    Returns:
        {"watchlist": [...], "avoid_list": [...]}. The watchlist is ordered by
        score descending then RSI ascending (missing RSI as 0); the avoid list
        by score ascending.
    """
    candidates: list[WatchlistEntry] = []
    avoid: list[WatchlistEntry] = []

    for row in rows:
        if row.get("category") not in EQUITY_CATEGORIES:
            continue
        entry = score_row(row)
        if entry.score >= min_score:
            candidates.append(entry)
        elif entry.score <= AVOID_SCORE:
            avoid.append(entry)

    candidates.sort(key=lambda e: (-e.score, e.rsi_14 if e.rsi_14 is not None else 0))
    avoid.sort(key=lambda e: e.score)

    return {"watchlist": candidates[:max_items], "avoid_list": avoid[:max_items]}

"""Keyword-based news sentiment scoring.

A small bilingual (Portuguese + English) financial lexicon with signed weights.
Scores are the mean matched weight squashed into (-1, 1) with x / (1 + |x|).
"""

import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

PT_POSITIVE = {
    "alta": 2.0, "subiu": 2.0, "sobe": 1.5, "valoriza": 2.0, "valorização": 2.0,
    "lucro": 2.5, "lucros": 2.5, "crescimento": 1.5, "cresce": 1.5, "cresceu": 1.5,
    "recorde": 2.0, "positivo": 1.5, "otimista": 1.5, "supera": 1.5, "superou": 1.5,
    "dividendos": 1.5, "rentabilidade": 1.5, "aprovação": 1.5, "aprovado": 1.5,
    "expansão": 1.5, "expande": 1.5, "contrato": 1.0, "parceria": 1.0,
    "aquisição": 1.0, "investimento": 1.0, "recomendação": 0.5, "compra": 1.0,
}  # fmt: skip

PT_NEGATIVE = {
    "queda": -2.0, "caiu": -2.0, "cai": -1.5, "desvaloriza": -2.0, "desvalorização": -2.0,
    "prejuízo": -2.5, "prejuízos": -2.5, "perdas": -2.0, "perda": -2.0,
    "negativo": -1.5, "pessimista": -1.5, "rebaixado": -2.0, "rebaixa": -2.0,
    "dívida": -1.5, "dívidas": -1.5, "endividamento": -1.5, "risco": -1.0,
    "crise": -2.0, "problema": -1.5, "problemas": -1.5, "investigação": -1.5,
    "multa": -2.0, "fraude": -3.0, "demissão": -1.5, "demissões": -1.5,
    "rombo": -2.5, "escândalo": -3.0, "falência": -3.0,
}  # fmt: skip

EN_POSITIVE = {
    "surge": 2.5, "soar": 2.0, "rally": 2.0, "gain": 1.5, "rise": 1.5,
    "profit": 2.0, "growth": 1.5, "record": 2.0, "beat": 1.5, "exceeds": 1.5,
    "bullish": 2.0, "upgrade": 2.0, "buy": 1.0, "outperform": 1.5,
    "dividend": 1.5, "expansion": 1.5, "acquisition": 1.0, "partnership": 1.0,
}  # fmt: skip

EN_NEGATIVE = {
    "crash": -3.0, "plunge": -2.5, "drop": -2.0, "fall": -2.0, "decline": -1.5,
    "loss": -2.0, "deficit": -2.0, "downgrade": -2.0, "sell": -1.0, "underperform": -1.5,
    "bearish": -2.0, "recession": -2.5, "crisis": -2.0, "fraud": -3.0,
    "bankruptcy": -3.0, "layoff": -1.5, "investigation": -1.5, "fine": -2.0,
    "risk": -1.0, "debt": -1.5, "scandal": -3.0,
}  # fmt: skip

VOCABULARY: Mapping[str, float] = MappingProxyType(
    {**PT_POSITIVE, **PT_NEGATIVE, **EN_POSITIVE, **EN_NEGATIVE}
)

POSITIVE_THRESHOLD = 0.2
NEGATIVE_THRESHOLD = -0.2

_TOKEN_SPLIT = re.compile(r"[\s.,;:!?()]+")


class SentimentAnalyzer:
    """Score financial text against a signed keyword vocabulary.

    Args:
        vocabulary: Word -> weight table. Defaults to the bilingual VOCABULARY.
    """

    def __init__(self, vocabulary: Mapping[str, float] | None = None) -> None:
        self.vocabulary = MappingProxyType(dict(vocabulary)) if vocabulary is not None else VOCABULARY

    def score(self, text: str | None) -> float:
        """Compound score of a single text, in (-1, 1). No match gives 0.0."""
        if not text:
            return 0.0

        total = 0.0
        count = 0
        for word in _TOKEN_SPLIT.split(text.lower()):
            weight = self.vocabulary.get(word)
            if weight is not None:
                total += weight
                count += 1

        if count == 0:
            return 0.0

        raw = total / count
        return raw / (1.0 + abs(raw))

    def analyze(self, items: Iterable[Any] | None) -> tuple[float | None, str | None]:
        """Average score over news items plus the lead headline.

        Items are plain strings or mappings with "text" (scored) and "title"
        (headline, falling back to the text). Items without text are skipped.

        Returns:
            (mean score, headline), or (None, None) when nothing was scorable.
        """
        items = list(items or [])
        if not items:
            return None, None

        scores = []
        for item in items:
            text = item.get("text") if isinstance(item, Mapping) else str(item)
            if not text:
                continue
            scores.append(self.score(text))

        if not scores:
            return None, None

        first = items[0]
        if isinstance(first, Mapping):
            title = first.get("title")
            if title is None:
                title = first.get("text") or first
            headline = str(title)
        else:
            headline = str(first)

        return sum(scores) / len(scores), headline

    @staticmethod
    def label(score: float | None) -> str | None:
        if score is None:
            return None
        if score >= POSITIVE_THRESHOLD:
            return "positive"
        if score <= NEGATIVE_THRESHOLD:
            return "negative"
        return "neutral"

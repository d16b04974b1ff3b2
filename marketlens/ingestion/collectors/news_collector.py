"""Google News RSS collector.

Searches the Google News RSS feed for an instrument and turns each item into a
small mapping the sentiment analyzer understands. Two passes exist:

- English: "<ticker> stock" on the US edition.
- Portuguese: "<company> OR <ticker without .SA> ações bolsa" on the Brazilian
  edition, for domestic equities only.

Feed URL:
    https://news.google.com/rss/search?q=<query>&hl=<hl>&gl=<gl>&ceid=<ceid>

News is best-effort: any transport or parse failure is logged and yields an
empty list, never an exception.
"""

from pathlib import Path
from typing import Any

import feedparser
from bs4 import BeautifulSoup

from marketlens.analytics.sentiment import SentimentAnalyzer
from marketlens.ingestion.collectors.base_collector import BaseCollector
from marketlens.shared.config import Config
from marketlens.shared.exceptions import MarketLensError

HEADLINE_MAX_CHARS = 500

# Weight of each language in the combined score
PT_WEIGHT = 0.6
EN_WEIGHT = 0.4


class NewsCollector(BaseCollector):
    """Collector for Google News RSS search results."""

    SOURCE_NAME = "google_news"

    RSS_URL = "https://news.google.com/rss/search"

    EDITIONS = {
        "en": {"hl": "en", "gl": "US", "ceid": "US:en"},
        "pt-BR": {"hl": "pt-BR", "gl": "BR", "ceid": "BR:pt-419"},
    }

    def __init__(
        self,
        analyzer: SentimentAnalyzer | None = None,
        max_items: int | None = None,
        log_file: Path | None = None,
        request_delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(log_file=log_file, request_delay=request_delay, timeout=timeout)
        self.analyzer = analyzer or SentimentAnalyzer()
        self.max_items = max_items or Config.NEWS_MAX_ITEMS

    def english(self, ticker: str) -> list[dict[str, str]]:
        """Fetch English news items for a ticker."""
        return self._search(f"{ticker} stock", "en")

    def portuguese(self, company_name: str, ticker: str) -> list[dict[str, str]]:
        """Fetch Portuguese news items for a Brazilian company."""
        clean_ticker = ticker.removesuffix(".SA")
        return self._search(f"{company_name} OR {clean_ticker} ações bolsa", "pt-BR")

    def news_sentiment(
        self, ticker: str, company_name: str, brazilian: bool = True
    ) -> dict[str, Any]:
        """Fetch news for an instrument and score it.

        Args:
            ticker: Provider ticker.
            company_name: Display name used in the Portuguese query.
            brazilian: Run the Portuguese pass as well.

        Returns:
            Mapping with news_sentiment_pt/en/combined, news_sentiment_label,
            news_count_pt/en and news_headline_pt/en.
        """
        result: dict[str, Any] = {
            "news_sentiment_pt": None,
            "news_sentiment_en": None,
            "news_sentiment_combined": None,
            "news_sentiment_label": None,
            "news_count_pt": 0,
            "news_count_en": 0,
            "news_headline_pt": None,
            "news_headline_en": None,
        }

        en_items = self.english(ticker)
        if en_items:
            score, headline = self.analyzer.analyze(en_items)
            result["news_count_en"] = len(en_items)
            result["news_sentiment_en"] = score
            result["news_headline_en"] = headline[:HEADLINE_MAX_CHARS] if headline else None

        if brazilian:
            pt_items = self.portuguese(company_name, ticker)
            if pt_items:
                score, headline = self.analyzer.analyze(pt_items)
                result["news_count_pt"] = len(pt_items)
                result["news_sentiment_pt"] = score
                result["news_headline_pt"] = headline[:HEADLINE_MAX_CHARS] if headline else None

        pt = result["news_sentiment_pt"]
        en = result["news_sentiment_en"]
        if pt is not None and en is not None:
            combined = PT_WEIGHT * pt + EN_WEIGHT * en
        else:
            combined = pt if pt is not None else en

        result["news_sentiment_combined"] = combined
        result["news_sentiment_label"] = self.analyzer.label(combined)
        return result

    def health_check(self) -> bool:
        """Verify the RSS search endpoint answers."""
        try:
            self._throttle()
            response = self._session.get(
                self.RSS_URL, params={"q": "ibovespa", **self.EDITIONS["en"]}, timeout=10
            )
            return bool(response.status_code == 200)
        except Exception as exc:
            self.logger.error("Google News health check failed: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Feed parsing
    # ------------------------------------------------------------------

    def _search(self, query: str, lang: str) -> list[dict[str, str]]:
        params = {"q": query, **self.EDITIONS[lang]}
        try:
            response = self._request(self.RSS_URL, params)
            feed = feedparser.parse(response.content)
        except MarketLensError as exc:
            self.logger.warning("News fetch failed for '%s' (%s): %s", query, lang, exc)
            return []

        if feed.bozo and not feed.entries:
            self.logger.warning(
                "Unparsable news feed for '%s' (%s): %s", query, lang, feed.get("bozo_exception")
            )
            return []

        items = [self._parse_entry(entry) for entry in feed.entries[: self.max_items]]
        self.logger.debug("Fetched %d news items for '%s' (%s)", len(items), query, lang)
        return items

    @staticmethod
    def _parse_entry(entry: Any) -> dict[str, str]:
        title = entry.get("title", "") or ""
        description = entry.get("summary", "") or ""
        if description:
            description = BeautifulSoup(description, "html.parser").get_text(" ", strip=True)
        source = (entry.get("source") or {}).get("title") or "Google News"
        text = f"{title}. {description}" if description else title
        return {"title": title, "text": text, "source": source}

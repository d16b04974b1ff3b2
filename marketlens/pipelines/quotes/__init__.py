"""Daily quote fetch pipeline."""

from marketlens.pipelines.quotes.fetch_quotes import QuoteFetcher, run

__all__ = ["QuoteFetcher", "run"]

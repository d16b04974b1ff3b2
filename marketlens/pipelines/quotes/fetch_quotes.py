"""Quote fetch cycle.

One cycle fetches the USD/BRL rate and benchmark performance, then for every
catalog instrument builds a computed row and upserts it:

    history + fundamentals -> technicals -> reference prices and changes
    -> benchmark deltas -> news sentiment (equities) -> signals
    -> BRL/USD conversion -> save

Each stage returns a new row dict; nothing is mutated in place. A failing
instrument is logged and counted, never fatal to the cycle.
"""

import threading
import time
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any

import pandas as pd

from marketlens.analytics.signals import detect_signals
from marketlens.analytics.technicals import (
    compute_technicals,
    price_changes,
    reference_prices,
)
from marketlens.ingestion.collectors.market_data_collector import MarketDataCollector
from marketlens.ingestion.collectors.news_collector import NewsCollector
from marketlens.shared.catalog import (
    BRL_QUOTED_CATEGORIES,
    Instrument,
    all_instruments,
    get_instrument,
)
from marketlens.shared.config import Config
from marketlens.shared.db.models import init_db
from marketlens.shared.db.storage import QuoteStore
from marketlens.shared.exceptions import ComputationSkip, MarketLensError, PersistenceFailure
from marketlens.shared.utils import setup_logger

FX_TICKER = "USDBRL=X"
FX_RANGE = "5d"

BENCHMARKS = {"^BVSP": "ibov", "^GSPC": "sp500"}
BENCHMARK_RANGE = "1y"
BENCHMARK_PERIODS = ("1d", "1w", "1m", "ytd")
# No 1w benchmark-relative delta
RELATIVE_PERIODS = ("1d", "1m", "ytd")

# Marks an instrument skipped because the cycle was cancelled
SKIPPED = object()


# ----------------------------------------------------------------------
# Row stages
# ----------------------------------------------------------------------


def performance(history: pd.DataFrame) -> dict[str, Any]:
    """Latest OHLCV bar plus reference prices and changes as of its date."""
    if history.empty:
        raise ComputationSkip("empty history")

    latest = history.iloc[-1]
    close = float(latest["close"])
    as_of = latest["date"]
    prices = reference_prices(history, as_of)

    def value(name: str) -> float | None:
        return None if pd.isna(latest[name]) else float(latest[name])

    return {
        "date": as_of,
        "open": value("open"),
        "high": value("high"),
        "low": value("low"),
        "close": close,
        "volume": value("volume"),
        **prices,
        **price_changes(close, prices),
    }


def benchmark_changes(history: pd.DataFrame, prefix: str) -> dict[str, float | None]:
    """`<prefix>_change_<period>` fields for a benchmark history."""
    row = performance(history)
    return {f"{prefix}_change_{p}": row[f"change_{p}"] for p in BENCHMARK_PERIODS}


def with_benchmark_deltas(
    row: Mapping[str, Any], benchmarks: Mapping[str, float | None]
) -> dict[str, Any]:
    """Copy benchmark changes onto the row and add `vs_<prefix>_<period>` deltas."""
    deltas: dict[str, Any] = dict(benchmarks)
    for prefix in BENCHMARKS.values():
        for period in RELATIVE_PERIODS:
            change = row.get(f"change_{period}")
            reference = benchmarks.get(f"{prefix}_change_{period}")
            deltas[f"vs_{prefix}_{period}"] = (
                change - reference if change is not None and reference is not None else None
            )
    return {**row, **deltas}


def with_signals(row: Mapping[str, Any]) -> dict[str, Any]:
    return {**row, **detect_signals(row).as_db_flags()}


def with_prices(row: Mapping[str, Any], category: str, usd_brl: float) -> dict[str, Any]:
    """Express the close in both BRL and USD.

    BRL-quoted instruments (domestic equities, the currency pair) keep their
    close as the BRL price; everything else is USD-quoted.
    """
    close = row["close"]
    if category in BRL_QUOTED_CATEGORIES:
        converted = {"price_brl": close, "price_usd": close / usd_brl}
    else:
        converted = {"price_usd": close, "price_brl": close * usd_brl}
    return {**row, **converted}


def pct_from_52w_high(close: float, week_52_high: float | None) -> float | None:
    if not week_52_high or week_52_high <= 0:
        return None
    return (close - week_52_high) / week_52_high * 100


# ----------------------------------------------------------------------
# Orchestrator
# ----------------------------------------------------------------------


class QuoteFetcher:
    """Runs fetch cycles over the instrument catalog.

    Args:
        market: Market data collector shared by every instrument (its throttle
            covers all workers).
        news: News collector, used for equities only.
        store: Persistence sink.
        default_usd_brl: Fallback FX rate when USDBRL=X cannot be fetched.
        log_file: Optional path for file-based logging.
    """

    def __init__(
        self,
        market: MarketDataCollector | None = None,
        news: NewsCollector | None = None,
        store: QuoteStore | None = None,
        default_usd_brl: float | None = None,
        log_file: Path | None = None,
    ) -> None:
        self.logger = setup_logger(self.__class__.__name__, log_file, Config.LOG_LEVEL)
        self.market = market or MarketDataCollector(log_file=log_file)
        self.news = news or NewsCollector(log_file=log_file)
        self.store = store or QuoteStore()
        self.default_usd_brl = default_usd_brl or Config.DEFAULT_USD_BRL

    def fetch_usd_brl(self) -> float:
        """Latest USD/BRL close, or the configured default on failure."""
        try:
            history = self.market.history(FX_TICKER, range_=FX_RANGE)
        except MarketLensError as exc:
            self.logger.warning(
                "USD/BRL unavailable (%s), using default %.2f", exc, self.default_usd_brl
            )
            return self.default_usd_brl

        if history.empty or not history["close"].iloc[-1] > 0:
            self.logger.warning("USD/BRL history empty, using default %.2f", self.default_usd_brl)
            return self.default_usd_brl
        return float(history["close"].iloc[-1])

    def fetch_benchmarks(self) -> dict[str, float | None]:
        """Benchmark changes for 1d/1w/1m/YTD. A failing benchmark is skipped."""
        result: dict[str, float | None] = {}
        for ticker, prefix in BENCHMARKS.items():
            try:
                history = self.market.history(ticker, range_=BENCHMARK_RANGE)
                result.update(benchmark_changes(history, prefix))
            except MarketLensError as exc:
                self.logger.warning("Benchmark %s unavailable: %s", ticker, exc)
        return result

    def build_row(
        self,
        instrument: Instrument,
        usd_brl: float,
        benchmarks: Mapping[str, float | None],
    ) -> dict[str, Any]:
        """Fetch and compute the full row for one instrument.

        Raises:
            MarketLensError: History could not be fetched or was empty.
        """
        history = self.market.history(instrument.ticker)
        row: dict[str, Any] = {
            "ticker": instrument.ticker,
            "name": instrument.name,
            "sector": instrument.sector,
            "category": instrument.category,
            "unit": instrument.unit,
            **performance(history),
        }

        fundamentals = self.market.fundamentals(instrument.ticker)
        row = {
            **row,
            **fundamentals.to_dict(),
            "pct_from_52w_high": pct_from_52w_high(row["close"], fundamentals.week_52_high),
        }
        row = {**row, **compute_technicals(history, row["close"])}
        row = with_benchmark_deltas(row, benchmarks)
        if instrument.is_equity:
            row = self._with_news(row, instrument)
        row = with_signals(row)
        return with_prices(row, instrument.category, usd_brl)

    def fetch_all(
        self,
        instruments: Iterable[Instrument] | None = None,
        workers: int = 1,
        cancel_event: threading.Event | None = None,
    ) -> tuple[int, int]:
        """Run one fetch cycle.

        Args:
            instruments: Instruments to fetch (default: the full catalog).
            workers: Worker threads for per-instrument work; 1 is sequential.
            cancel_event: When set, instruments not yet started are skipped.
                Rows already saved are kept.

        Returns:
            (saved_count, error_count).
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")

        instruments = list(instruments if instruments is not None else all_instruments())
        cancel_event = cancel_event or threading.Event()
        start = time.monotonic()
        self.logger.info("Starting quote fetch for %d instruments", len(instruments))

        usd_brl = self.fetch_usd_brl()
        benchmarks = self.fetch_benchmarks()
        self.logger.info("USD/BRL: %.4f", usd_brl)

        saved = 0
        errors = 0

        def handle(instrument: Instrument, row: Any) -> None:
            nonlocal saved, errors
            if row is SKIPPED:
                return
            if row is None:
                errors += 1
                return
            try:
                self.store.save(row)
                saved += 1
            except PersistenceFailure as exc:
                self.logger.error("Save error %s: %s", instrument.ticker, exc)
                errors += 1

        if workers == 1:
            for instrument in instruments:
                if cancel_event.is_set():
                    break
                handle(instrument, self._safe_build(instrument, usd_brl, benchmarks, cancel_event))
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures: dict[Future, Instrument] = {
                    pool.submit(self._safe_build, instrument, usd_brl, benchmarks, cancel_event): instrument
                    for instrument in instruments
                }
                for future in as_completed(futures):
                    if cancel_event.is_set():
                        for pending in futures:
                            pending.cancel()
                    if future.cancelled():
                        continue
                    handle(futures[future], future.result())

        if cancel_event.is_set():
            self.logger.warning("Quote fetch cancelled")
        self.logger.info(
            "Quote fetch complete: %d/%d saved, %d errors in %.1fs",
            saved,
            len(instruments),
            errors,
            time.monotonic() - start,
        )
        return saved, errors

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _safe_build(
        self,
        instrument: Instrument,
        usd_brl: float,
        benchmarks: Mapping[str, float | None],
        cancel_event: threading.Event,
    ) -> Any:
        """Row for `instrument`, None on failure, SKIPPED once cancelled."""
        if cancel_event.is_set():
            return SKIPPED
        try:
            return self.build_row(instrument, usd_brl, benchmarks)
        except Exception as exc:
            self.logger.error("Error fetching %s: %s", instrument.ticker, exc)
            return None

    def _with_news(self, row: dict[str, Any], instrument: Instrument) -> dict[str, Any]:
        try:
            news = self.news.news_sentiment(
                instrument.ticker, instrument.name, brazilian=instrument.is_brazilian
            )
        except Exception as exc:
            self.logger.warning("News error for %s: %s", instrument.ticker, exc)
            return row
        return {**row, **news}


def run(
    tickers: Iterable[str] | None = None,
    workers: int | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[int, int]:
    """Run a fetch cycle with collectors and storage built from Config.

    Creates any missing tables first, so a fresh database works.
    """
    Config.validate()
    init_db()
    instruments = [get_instrument(t) for t in tickers] if tickers else None
    fetcher = QuoteFetcher(log_file=Config.LOGS_DIR / "pipelines" / "fetch_quotes.log")
    return fetcher.fetch_all(
        instruments, workers=workers or Config.FETCH_WORKERS, cancel_event=cancel_event
    )

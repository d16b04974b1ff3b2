"""Quote fetch script.

Runs one fetch cycle: USD/BRL rate, benchmarks, then history, fundamentals,
technicals, news and signals for every catalog instrument, upserted into the
quotes table.

Usage:
    # Fetch the full catalog
    python scripts/fetch_quotes.py

    # Fetch specific tickers
    python scripts/fetch_quotes.py --tickers PETR4.SA,VALE3.SA,AAPL

    # Fan out over 4 worker threads
    python scripts/fetch_quotes.py --workers 4

    # Health check only
    python scripts/fetch_quotes.py --health-check

Example:
    $ python scripts/fetch_quotes.py --tickers PETR4.SA,AAPL
    [INFO] Starting quote fetch for 2 instruments
    [INFO] USD/BRL: 5.4321
    [INFO] Quote fetch complete: 2/2 saved, 0 errors in 6.3s
    [SUCCESS] Saved 2 quotes (0 errors)
"""

import argparse
import signal
import sys
import threading

from marketlens.ingestion.collectors import (
    MarketDataCollector,
    NewsCollector,
    PredictionMarketCollector,
)
from marketlens.pipelines.quotes.fetch_quotes import run
from marketlens.shared.config import Config
from marketlens.shared.utils import setup_logger


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Fetch daily quotes, indicators and sentiment for tracked instruments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--tickers",
        type=str,
        help="Comma-separated tickers to fetch. Default: full catalog",
        metavar="LIST",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=Config.FETCH_WORKERS,
        help=f"Worker threads for per-instrument work (default: {Config.FETCH_WORKERS})",
    )

    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health checks only and exit",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args()


def health_check(logger) -> int:
    collectors = [MarketDataCollector(), NewsCollector(), PredictionMarketCollector()]
    failed = 0
    for collector in collectors:
        ok = collector.health_check()
        logger.info("Health check %s: %s", collector.SOURCE_NAME, "PASSED" if ok else "FAILED")
        failed += not ok
    return 1 if failed else 0


def main() -> int:
    """Main fetch script."""
    args = parse_args()

    logger = setup_logger(
        "fetch_quotes",
        level="DEBUG" if args.verbose else "INFO",
    )

    try:
        Config.validate()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    if args.workers < 1:
        logger.error("--workers must be at least 1")
        return 1

    if args.health_check:
        return health_check(logger)

    tickers = None
    if args.tickers:
        tickers = [t.strip() for t in args.tickers.split(",") if t.strip()]
        logger.info("Fetching tickers: %s", ", ".join(tickers))

    # Ctrl-C stops scheduling new instruments; saved rows are kept
    cancel_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: cancel_event.set())

    saved, errors = run(tickers, workers=args.workers, cancel_event=cancel_event)

    if saved == 0:
        logger.error("[FAILED] No quotes saved (%d errors)", errors)
        return 1

    logger.info("[SUCCESS] Saved %d quotes (%d errors)", saved, errors)
    return 0


if __name__ == "__main__":
    sys.exit(main())

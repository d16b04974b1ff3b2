"""Watchlist builder script.

Scores the stored quote rows and prints the watchlist, the avoid list and the
signal board as JSON.

Usage:
    # Latest row of every instrument
    python scripts/build_watchlist.py

    # Stricter threshold, shorter lists
    python scripts/build_watchlist.py --min-score 5 --max-items 5

    # Rows of a given quote date
    python scripts/build_watchlist.py --date 2025-03-14

    # Attach Polymarket sentiment to matching rows
    python scripts/build_watchlist.py --with-polymarket
"""

import argparse
import json
import sys
from datetime import datetime

from marketlens.analytics.prediction_markets import attach_prediction_markets, polymarket_fields
from marketlens.analytics.signals import signal_board
from marketlens.analytics.watchlist import DEFAULT_MAX_ITEMS, DEFAULT_MIN_SCORE, build_watchlist
from marketlens.ingestion.collectors import PredictionMarketCollector
from marketlens.shared.db.models import init_db
from marketlens.shared.db.storage import QuoteStore
from marketlens.shared.utils import setup_logger


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Rank stored quotes into a watchlist and an avoid list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--min-score",
        type=float,
        default=DEFAULT_MIN_SCORE,
        help=f"Minimum watchlist score (default: {DEFAULT_MIN_SCORE})",
    )

    parser.add_argument(
        "--max-items",
        type=int,
        default=DEFAULT_MAX_ITEMS,
        help=f"Maximum entries per list (default: {DEFAULT_MAX_ITEMS})",
    )

    parser.add_argument(
        "--date",
        type=str,
        help="Quote date (YYYY-MM-DD). Default: latest row per instrument",
        metavar="DATE",
    )

    parser.add_argument(
        "--with-polymarket",
        action="store_true",
        help="Fetch Polymarket sentiment and attach it to matching rows",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args()


def main() -> int:
    """Main watchlist script."""
    args = parse_args()

    logger = setup_logger(
        "build_watchlist",
        level="DEBUG" if args.verbose else "INFO",
    )

    init_db()
    store = QuoteStore()
    if args.date:
        try:
            quote_date = datetime.strptime(args.date, "%Y-%m-%d").date()
        except ValueError:
            logger.error("Invalid date format. Use YYYY-MM-DD")
            return 1
        rows = store.for_date(quote_date)
    else:
        rows = store.latest_per_instrument()

    if not rows:
        logger.error("No stored quotes found")
        return 1
    logger.info("Scoring %d rows", len(rows))

    output: dict = {}
    if args.with_polymarket:
        sentiments = PredictionMarketCollector().fetch_sentiment()
        rows = attach_prediction_markets(rows, sentiments)
        output["prediction_markets"] = {
            key: polymarket_fields(sentiment) for key, sentiment in sentiments.items()
        }

    ranked = build_watchlist(rows, min_score=args.min_score, max_items=args.max_items)
    output["watchlist"] = [entry.to_dict() for entry in ranked["watchlist"]]
    output["avoid_list"] = [entry.to_dict() for entry in ranked["avoid_list"]]
    output["signals"] = signal_board(rows)

    print(json.dumps(output, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())

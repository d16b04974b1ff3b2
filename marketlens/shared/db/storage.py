"""Quote storage on top of the SQLAlchemy session layer.

Rows cross this boundary as plain dicts keyed like the Quote columns, plus
`ticker` and `date` (the quote date). Writes are find-or-update upserts keyed
on (ticker, quote_date), so re-running a fetch cycle for the same day updates
rows in place instead of duplicating them.

Example:

    from marketlens.shared.db.storage import QuoteStore

    store = QuoteStore()
    store.save({"ticker": "PETR4.SA", "date": date(2025, 3, 14), "close": 38.2, ...})
    rows = store.latest_per_instrument()
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from marketlens.shared.catalog import get_instrument
from marketlens.shared.exceptions import PersistenceFailure
from marketlens.shared.utils import setup_logger

from .models import QUOTE_FIELDS, Instrument, Quote
from .session import SessionLocal, get_db

# Only written when the row carries a value; read-path enrichment owns them
PREDICTION_MARKET_FIELDS = frozenset(f for f in QUOTE_FIELDS if f.startswith("polymarket_"))


class QuoteStore:
    """Persistence sink for computed quote rows."""

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self.session_factory = session_factory or SessionLocal
        self.logger = setup_logger(self.__class__.__name__)

    def save(self, row: Mapping[str, Any]) -> None:
        """Upsert one row.

        Raises:
            ValueError: Row has no ticker or date.
            PersistenceFailure: The database rejected the write.
        """
        ticker = row.get("ticker")
        quote_date = row.get("date")
        if not ticker or quote_date is None:
            raise ValueError("row must carry 'ticker' and 'date'")
        if isinstance(quote_date, datetime):
            quote_date = quote_date.date()

        try:
            with get_db(self.session_factory) as db:
                instrument = self._get_or_create_instrument(db, row)
                quote = db.execute(
                    select(Quote).where(Quote.ticker == ticker, Quote.quote_date == quote_date)
                ).scalar_one_or_none()
                if quote is None:
                    quote = Quote(instrument=instrument, ticker=ticker, quote_date=quote_date)
                    db.add(quote)

                for field in QUOTE_FIELDS:
                    value = row.get(field)
                    if field in PREDICTION_MARKET_FIELDS and value is None:
                        continue
                    setattr(quote, field, value)
                quote.fetched_at = datetime.now(timezone.utc).replace(tzinfo=None)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Failed to save {ticker} for {quote_date}: {exc}") from exc

    def save_all(self, rows: Iterable[Mapping[str, Any]]) -> int:
        """Save rows one by one; a rejected row is logged and skipped.

        Returns:
            Number of rows saved.
        """
        saved = 0
        for row in rows:
            try:
                self.save(row)
                saved += 1
            except (PersistenceFailure, ValueError) as exc:
                self.logger.error("Save error %s: %s", row.get("ticker"), exc)
        return saved

    def latest_per_instrument(self) -> list[dict[str, Any]]:
        """Most recent row of every instrument, ordered by ticker."""
        latest = (
            select(Quote.ticker, func.max(Quote.quote_date).label("max_date"))
            .group_by(Quote.ticker)
            .subquery()
        )
        stmt = (
            select(Quote, Instrument)
            .join(Instrument, Quote.instrument_id == Instrument.id)
            .join(
                latest,
                (Quote.ticker == latest.c.ticker) & (Quote.quote_date == latest.c.max_date),
            )
            .order_by(Quote.ticker)
        )
        with get_db(self.session_factory) as db:
            return [self._to_row(q, i) for q, i in db.execute(stmt).all()]

    def for_date(self, quote_date: date) -> list[dict[str, Any]]:
        """All rows for a quote date, ordered by ticker."""
        stmt = (
            select(Quote, Instrument)
            .join(Instrument, Quote.instrument_id == Instrument.id)
            .where(Quote.quote_date == quote_date)
            .order_by(Quote.ticker)
        )
        with get_db(self.session_factory) as db:
            return [self._to_row(q, i) for q, i in db.execute(stmt).all()]

    def count(self) -> int:
        with get_db(self.session_factory) as db:
            return db.execute(select(func.count(Quote.id))).scalar_one()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _get_or_create_instrument(db: Session, row: Mapping[str, Any]) -> Instrument:
        ticker = row["ticker"]
        instrument = db.execute(
            select(Instrument).where(Instrument.ticker == ticker)
        ).scalar_one_or_none()
        if instrument is not None:
            return instrument

        known = get_instrument(ticker)
        instrument = Instrument(
            ticker=ticker,
            name=row.get("name") or known.name,
            sector=row.get("sector") or known.sector,
            category=row.get("category") or known.category,
            unit=row.get("unit") or known.unit,
        )
        db.add(instrument)
        db.flush()
        return instrument

    @staticmethod
    def _to_row(quote: Quote, instrument: Instrument) -> dict[str, Any]:
        row: dict[str, Any] = {
            "ticker": quote.ticker,
            "date": quote.quote_date,
            "name": instrument.name,
            "sector": instrument.sector,
            "category": instrument.category,
            "unit": instrument.unit,
            "fetched_at": quote.fetched_at,
        }
        row.update({field: getattr(quote, field) for field in QUOTE_FIELDS})
        return row

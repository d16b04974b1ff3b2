from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    Column,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import relationship

from .base import Base
from .engine import engine


class Instrument(Base):
    __tablename__ = "instruments"

    id = Column(Integer, primary_key=True)
    ticker = Column(String(20), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    sector = Column(String(50))
    category = Column(String(20), nullable=False)
    unit = Column(String(20), default="")

    quotes = relationship("Quote", back_populates="instrument")


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    instrument_id = Column(Integer, ForeignKey("instruments.id"), nullable=False)
    ticker = Column(String(20), nullable=False)
    quote_date = Column(Date, nullable=False)
    fetched_at = Column(TIMESTAMP)

    # Prices
    price_brl = Column(Float)
    price_usd = Column(Float)
    open = Column(Float)
    high = Column(Float)
    low = Column(Float)
    close = Column(Float)
    volume = Column(Float)

    # Reference prices and changes (%)
    price_1d = Column(Float)
    price_1w = Column(Float)
    price_1m = Column(Float)
    price_ytd = Column(Float)
    price_5y = Column(Float)
    price_all = Column(Float)
    change_1d = Column(Float)
    change_1w = Column(Float)
    change_1m = Column(Float)
    change_ytd = Column(Float)
    change_5y = Column(Float)
    change_all = Column(Float)

    # Fundamentals
    market_cap = Column(Float)
    pe_ratio = Column(Float)
    forward_pe = Column(Float)
    pb_ratio = Column(Float)
    dividend_yield = Column(Float)
    eps = Column(Float)
    beta = Column(Float)
    week_52_high = Column(Float)
    week_52_low = Column(Float)
    pct_from_52w_high = Column(Float)
    profit_margin = Column(Float)
    roe = Column(Float)
    debt_to_equity = Column(Float)
    analyst_rating = Column(String(30))
    target_price = Column(Float)
    num_analysts = Column(Float)

    # Technicals
    ma_50 = Column(Float)
    ma_200 = Column(Float)
    above_ma_50 = Column(Boolean)
    above_ma_200 = Column(Boolean)
    ma_50_above_200 = Column(Boolean)
    rsi_14 = Column(Float)
    volatility_30d = Column(Float)
    avg_volume_20d = Column(Float)
    volume_ratio = Column(Float)

    # Benchmarks
    ibov_change_1d = Column(Float)
    ibov_change_1w = Column(Float)
    ibov_change_1m = Column(Float)
    ibov_change_ytd = Column(Float)
    sp500_change_1d = Column(Float)
    sp500_change_1w = Column(Float)
    sp500_change_1m = Column(Float)
    sp500_change_ytd = Column(Float)
    vs_ibov_1d = Column(Float)
    vs_ibov_1m = Column(Float)
    vs_ibov_ytd = Column(Float)
    vs_sp500_1d = Column(Float)
    vs_sp500_1m = Column(Float)
    vs_sp500_ytd = Column(Float)

    # Signals
    signal_rsi_oversold = Column(Boolean, default=False)
    signal_rsi_overbought = Column(Boolean, default=False)
    signal_52w_high = Column(Boolean, default=False)
    signal_52w_low = Column(Boolean, default=False)
    signal_volume_spike = Column(Boolean, default=False)
    signal_golden_cross = Column(Boolean, default=False)
    signal_death_cross = Column(Boolean, default=False)
    signal_bullish_trend = Column(Boolean, default=False)
    signal_bearish_trend = Column(Boolean, default=False)
    signal_summary = Column(String(10))

    # News sentiment
    news_sentiment_pt = Column(Float)
    news_sentiment_en = Column(Float)
    news_sentiment_combined = Column(Float)
    news_sentiment_label = Column(String(10))
    news_count_pt = Column(Integer, default=0)
    news_count_en = Column(Integer, default=0)
    news_headline_pt = Column(String(500))
    news_headline_en = Column(String(500))

    # Prediction markets
    polymarket_score = Column(Float)
    polymarket_label = Column(String(10))
    polymarket_confidence = Column(Float)
    polymarket_market_count = Column(Integer)
    polymarket_volume = Column(Float)
    polymarket_top_question = Column(Text)
    polymarket_top_probability = Column(Float)

    instrument = relationship("Instrument", back_populates="quotes")

    __table_args__ = (
        UniqueConstraint("ticker", "quote_date"),
        Index("idx_quotes_date", "quote_date"),
    )


# Row keys copied verbatim onto Quote columns
QUOTE_FIELDS = tuple(
    column.name
    for column in Quote.__table__.columns
    if column.name not in {"id", "instrument_id", "ticker", "quote_date", "fetched_at"}
)


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables on `bind` (default: the configured engine).

    Existing tables are left as they are, so this is safe to call on every run.
    """
    Base.metadata.create_all(bind=bind or engine)

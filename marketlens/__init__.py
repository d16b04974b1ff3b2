"""marketlens: daily market data, technical signals, sentiment and watchlist ranking."""

__version__ = "0.1.0"

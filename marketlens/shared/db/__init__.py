"""Database engine, session factory, ORM models, and quote storage."""

from .base import Base
from .engine import create_db_engine, engine
from .models import QUOTE_FIELDS, Instrument, Quote, init_db
from .session import SessionLocal, get_db
from .storage import QuoteStore

__all__ = [
    # ORM infrastructure
    "Base",
    "engine",
    "create_db_engine",
    "SessionLocal",
    "get_db",
    # ORM models
    "Instrument",
    "Quote",
    "QUOTE_FIELDS",
    "init_db",
    # Storage
    "QuoteStore",
]

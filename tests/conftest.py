"""
Root pytest configuration.

Shared fixtures: synthetic OHLCV histories, mock HTTP responses, a no-op
sleep so retry tests run instantly, and an in-memory SQLite quote store.
"""

import json
from datetime import date, timedelta
from unittest.mock import Mock

import pandas as pd
import pytest
import requests
from sqlalchemy.orm import sessionmaker

from marketlens.shared.db.base import Base
from marketlens.shared.db.engine import create_db_engine
from marketlens.shared.db.storage import QuoteStore


def make_response(
    payload=None, status: int = 200, content: bytes | str | None = None, headers=None
) -> Mock:
    """Build a mock requests.Response."""
    resp = Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.headers = headers or {}
    if content is None:
        content = json.dumps(payload) if payload is not None else ""
    resp.content = content.encode() if isinstance(content, str) else content
    if payload is not None:
        resp.json.return_value = payload
    else:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    return resp


def make_history(
    closes: list[float],
    volumes: list[float | None] | None = None,
    end: date = date(2025, 3, 14),
) -> pd.DataFrame:
    """Daily history ending on `end`, one calendar day per close."""
    n = len(closes)
    dates = [end - timedelta(days=n - 1 - i) for i in range(n)]
    volumes = volumes if volumes is not None else [1_000_000.0] * n
    return pd.DataFrame(
        {
            "date": dates,
            "open": closes,
            "high": [c * 1.01 for c in closes],
            "low": [c * 0.99 for c in closes],
            "close": [float(c) for c in closes],
            "volume": volumes,
        }
    )


@pytest.fixture
def no_sleep(monkeypatch):
    """Patch time.sleep in the collector base and record requested delays."""
    delays: list[float] = []
    monkeypatch.setattr(
        "marketlens.ingestion.collectors.base_collector.time.sleep", delays.append
    )
    return delays


@pytest.fixture
def sqlite_session_factory():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def store(sqlite_session_factory) -> QuoteStore:
    return QuoteStore(session_factory=sqlite_session_factory)


@pytest.fixture
def history_factory():
    return make_history


@pytest.fixture
def response_factory():
    return make_response

"""Shared fixtures: in-memory database, fake market data client, API client."""
from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from api.coingecko_client import CoinQuote  # noqa: E402
from db.db_conn import DbConn  # noqa: E402


def make_quote(symbol: str, price: float, market_cap: float, change: float = 1.0, name: Optional[str] = None) -> CoinQuote:
    return CoinQuote(
        id=(name or symbol).lower(),
        name=name or symbol.upper(),
        symbol=symbol,
        current_price=price,
        market_cap=market_cap,
        price_change_percentage_24h=change,
    )


def top_coins(count: int) -> List[CoinQuote]:
    return [
        make_quote(f"c{idx}", price=float(idx + 1), market_cap=float(1000 - idx), change=float(idx - 2))
        for idx in range(count)
    ]


class FakeMarketClient:
    """Stand-in for CoinGeckoClient returning canned quotes."""

    def __init__(self, quotes=None, exception=None) -> None:
        self.quotes = list(quotes or [])
        self.exception = exception
        self.calls: List[int] = []
        self.release: Optional[threading.Event] = None
        self.entered = threading.Event()

    def fetch_top_coins(self, n: int = 10) -> List[CoinQuote]:
        self.calls.append(n)
        self.entered.set()
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.exception:
            raise self.exception
        return list(self.quotes)


@pytest.fixture
def db() -> DbConn:
    conn = DbConn("sqlite+pysqlite:///:memory:")
    conn.create_all()
    yield conn
    conn.engine.dispose()


@pytest.fixture
def market_client() -> FakeMarketClient:
    return FakeMarketClient(quotes=top_coins(10))


@pytest.fixture
def api_client(db, market_client):
    from fastapi.testclient import TestClient

    from app import create_app
    from config import RateLimitConfig
    from sync.pipeline import SyncPipeline
    from web import deps

    app = create_app(rate_limit=RateLimitConfig(window_ms=60000, max_requests=1000), enable_scheduler=False)
    pipeline = SyncPipeline(market_client, db)
    app.dependency_overrides[deps.get_optional_db_conn] = lambda: db
    app.dependency_overrides[deps.get_pipeline] = lambda: pipeline
    with TestClient(app) as client:
        yield client

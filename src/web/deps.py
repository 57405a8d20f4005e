"""Shared FastAPI dependencies (DB sessions, sync pipeline, query service)."""
from __future__ import annotations

from typing import Generator, Optional

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from api.coingecko_client import CoinGeckoClient
from config import get_sync_coin_count, load_env_file
from db.db_conn import DbConn
from services.crypto_query_service import CryptoQueryService
from sync.pipeline import SyncPipeline

# Load environment variables so DbConn can read DB settings.
load_env_file()

_db_conn: Optional[DbConn] = None
_pipeline: Optional[SyncPipeline] = None
_query_service = CryptoQueryService()


def get_optional_db_conn() -> Optional[DbConn]:
    """Return the process-wide DbConn, or None when no database is configured."""
    global _db_conn

    if _db_conn is None:
        try:
            _db_conn = DbConn()
        except ValueError:
            return None
    return _db_conn


def get_db_conn(db: Optional[DbConn] = Depends(get_optional_db_conn)) -> DbConn:
    if db is None:
        raise HTTPException(status_code=503, detail="Database URL not configured")
    return db


def get_db(db: DbConn = Depends(get_db_conn)) -> Generator[Session, None, None]:
    """Provide a SQLAlchemy session per-request (lazy init)."""
    session = db.get_session()
    try:
        yield session
    finally:
        session.close()


def build_pipeline(db: DbConn) -> SyncPipeline:
    """Return the shared pipeline so manual and scheduled syncs use one lock."""
    global _pipeline

    if _pipeline is None or _pipeline.db is not db:
        _pipeline = SyncPipeline(CoinGeckoClient(), db, coin_count=get_sync_coin_count())
    return _pipeline


def get_pipeline(db: DbConn = Depends(get_db_conn)) -> SyncPipeline:
    return build_pipeline(db)


def get_query_service() -> CryptoQueryService:
    return _query_service

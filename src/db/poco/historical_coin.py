from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String

from db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoricalCoin(Base):
    __tablename__ = "historical_coins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    symbol = Column(String(30), nullable=False)
    price = Column(Float, nullable=False)
    market_cap = Column(Float, nullable=False)
    change_24h = Column(Float, nullable=True)
    # Observation time (UTC), set once at append.
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("ix_historical_coins_symbol", "symbol"),
        Index("ix_historical_coins_timestamp", "timestamp"),
        Index("ix_historical_coins_symbol_ts", "symbol", "timestamp"),
    )

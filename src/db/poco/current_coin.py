from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String, UniqueConstraint

from db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CurrentCoin(Base):
    __tablename__ = "current_coins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    # Lowercased ticker, e.g. btc or eth.
    symbol = Column(String(30), nullable=False)
    # Spot price in USD.
    price = Column(Float, nullable=False)
    market_cap = Column(Float, nullable=False)
    # 24h price change in percent.
    change_24h = Column(Float, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (UniqueConstraint("symbol", name="uq_current_coins_symbol"),)

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from db.poco.historical_coin import HistoricalCoin


@dataclass(frozen=True)
class HistoricalCoinRow:
    name: str
    symbol: str
    price: float
    market_cap: float
    change_24h: Optional[float]
    timestamp: datetime


@dataclass(frozen=True)
class SymbolAverage:
    symbol: str
    name: str
    avg_price: float
    avg_market_cap: float
    avg_change_24h: Optional[float]


class HistoricalCoinsRepo:
    """Append-only repository for per-coin observations."""

    def append_many(self, session: Session, rows: Iterable[HistoricalCoinRow]) -> int:
        objs = [
            HistoricalCoin(
                name=r.name,
                symbol=r.symbol.lower(),
                price=r.price,
                market_cap=r.market_cap,
                change_24h=r.change_24h,
                timestamp=r.timestamp,
            )
            for r in rows
        ]
        session.add_all(objs)
        session.flush()
        return len(objs)

    def count(self, session: Session) -> int:
        return int(session.scalar(select(func.count()).select_from(HistoricalCoin)) or 0)

    def list_all(self, session: Session) -> List[HistoricalCoin]:
        # TODO: add limit/offset once the dashboard pages through history
        stmt = select(HistoricalCoin).order_by(HistoricalCoin.timestamp.desc(), HistoricalCoin.id.desc())
        return list(session.scalars(stmt).all())

    def list_for_symbol_since(self, session: Session, symbol: str, since: datetime) -> List[HistoricalCoin]:
        stmt = (
            select(HistoricalCoin)
            .where(HistoricalCoin.symbol == symbol.lower(), HistoricalCoin.timestamp >= since)
            .order_by(HistoricalCoin.timestamp.asc(), HistoricalCoin.id.asc())
        )
        return list(session.scalars(stmt).all())

    def averages_between(self, session: Session, start: datetime, end: datetime) -> List[SymbolAverage]:
        """Average price, market cap and 24h change per symbol within ``[start, end]``.

        The reported name is the one on the earliest row of each group inside
        the window.
        """
        in_window = and_(HistoricalCoin.timestamp >= start, HistoricalCoin.timestamp <= end)

        aggregates = (
            select(
                HistoricalCoin.symbol.label("symbol"),
                func.avg(HistoricalCoin.price).label("avg_price"),
                func.avg(HistoricalCoin.market_cap).label("avg_market_cap"),
                func.avg(HistoricalCoin.change_24h).label("avg_change_24h"),
            )
            .where(in_window)
            .group_by(HistoricalCoin.symbol)
            .subquery()
        )
        ranked = (
            select(
                HistoricalCoin.symbol.label("symbol"),
                HistoricalCoin.name.label("name"),
                func.row_number()
                .over(
                    partition_by=HistoricalCoin.symbol,
                    order_by=(HistoricalCoin.timestamp.asc(), HistoricalCoin.id.asc()),
                )
                .label("rn"),
            )
            .where(in_window)
            .subquery()
        )
        stmt = (
            select(
                aggregates.c.symbol,
                ranked.c.name,
                aggregates.c.avg_price,
                aggregates.c.avg_market_cap,
                aggregates.c.avg_change_24h,
            )
            .join(ranked, and_(ranked.c.symbol == aggregates.c.symbol, ranked.c.rn == 1))
            .order_by(aggregates.c.avg_market_cap.desc(), aggregates.c.symbol.asc())
        )
        return [
            SymbolAverage(
                symbol=row.symbol,
                name=row.name,
                avg_price=float(row.avg_price),
                avg_market_cap=float(row.avg_market_cap),
                avg_change_24h=float(row.avg_change_24h) if row.avg_change_24h is not None else None,
            )
            for row in session.execute(stmt)
        ]

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Mapping

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from db.poco.current_coin import CurrentCoin

# API sort keys mapped onto snapshot columns.
SORT_COLUMNS: Mapping[str, object] = {
    "name": CurrentCoin.name,
    "symbol": CurrentCoin.symbol,
    "price": CurrentCoin.price,
    "marketCap": CurrentCoin.market_cap,
    "change24h": CurrentCoin.change_24h,
}

CHANGE_FILTERS = ("all", "positive", "negative")


@dataclass(frozen=True)
class CurrentCoinRow:
    name: str
    symbol: str
    price: float
    market_cap: float
    change_24h: float
    updated_at: datetime


class CurrentCoinsRepo:
    """Repository for the single live snapshot of top coins."""

    def replace_all(self, session: Session, rows: Iterable[CurrentCoinRow]) -> int:
        """Delete every snapshot row and insert ``rows`` in the caller's transaction."""
        objs = [
            CurrentCoin(
                name=r.name,
                symbol=r.symbol.lower(),
                price=r.price,
                market_cap=r.market_cap,
                change_24h=r.change_24h,
                updated_at=r.updated_at,
            )
            for r in rows
        ]
        session.execute(delete(CurrentCoin))
        session.add_all(objs)
        session.flush()
        return len(objs)

    def count(self, session: Session) -> int:
        return int(session.scalar(select(func.count()).select_from(CurrentCoin)) or 0)

    def list_current(
        self,
        session: Session,
        search: str = "",
        sort_key: str = "marketCap",
        descending: bool = True,
        change_filter: str = "all",
    ) -> List[CurrentCoin]:
        if sort_key not in SORT_COLUMNS:
            raise ValueError(f"Invalid sort key '{sort_key}'. Allowed: {tuple(SORT_COLUMNS)}")

        stmt = select(CurrentCoin)
        term = search.strip().lower()
        if term:
            stmt = stmt.where(
                or_(
                    func.lower(CurrentCoin.name).contains(term, autoescape=True),
                    func.lower(CurrentCoin.symbol).contains(term, autoescape=True),
                )
            )
        if change_filter == "positive":
            stmt = stmt.where(CurrentCoin.change_24h > 0)
        elif change_filter == "negative":
            stmt = stmt.where(CurrentCoin.change_24h < 0)

        column = SORT_COLUMNS[sort_key]
        order = column.desc() if descending else column.asc()  # type: ignore[attr-defined]
        stmt = stmt.order_by(order, CurrentCoin.symbol.asc())
        return list(session.scalars(stmt).all())

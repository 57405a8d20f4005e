"""Read-side operations over the snapshot and history tables.

Parameter parsing, range resolution and response validation live here so the
HTTP routes stay a thin mapping layer.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from db.current_coins_repo import SORT_COLUMNS, CurrentCoinsRepo
from db.historical_coins_repo import HistoricalCoinsRepo
from errors import InvalidDataShape, InvalidQueryParameter, InvalidRange
from services.schemas import AverageCrypto, CurrentCrypto, HistoricalCrypto

RANGE_DAYS: Dict[str, int] = {"1d": 1, "3d": 3, "7d": 7, "30d": 30}
DEFAULT_RANGE_DAYS = 1

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class CurrentFilter:
    search: str = ""
    sort_key: str = "marketCap"
    sort_dir: str = "desc"
    filter_change: str = "all"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime_param(name: str, raw: Optional[str]) -> datetime:
    """Parse an ISO-8601 date or date-time query value into an aware UTC datetime."""
    if raw is None or not raw.strip():
        raise InvalidRange("start and end query parameters are required")
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise InvalidRange(f"Invalid date format for '{name}': {raw!r}") from exc
    return as_utc(parsed)


def resolve_range(range_label: Optional[str]) -> timedelta:
    return timedelta(days=RANGE_DAYS.get(range_label or "", DEFAULT_RANGE_DAYS))


def _validate(model: Type[M], rows: Sequence[dict]) -> List[M]:
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise InvalidDataShape(f"Invalid data format: {exc}") from exc


class CryptoQueryService:
    """Listing, history and aggregate queries backing the dashboard."""

    def __init__(
        self,
        current_repo: Optional[CurrentCoinsRepo] = None,
        history_repo: Optional[HistoricalCoinsRepo] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.current_repo = current_repo or CurrentCoinsRepo()
        self.history_repo = history_repo or HistoricalCoinsRepo()
        self._clock = clock

    def list_current(self, session: Session, flt: Optional[CurrentFilter] = None) -> List[CurrentCrypto]:
        flt = flt or CurrentFilter()
        if flt.sort_key not in SORT_COLUMNS:
            raise InvalidQueryParameter(
                f"Invalid sortKey '{flt.sort_key}'. Allowed: {', '.join(SORT_COLUMNS)}"
            )
        change_filter = flt.filter_change if flt.filter_change in ("positive", "negative") else "all"

        rows = self.current_repo.list_current(
            session,
            search=flt.search or "",
            sort_key=flt.sort_key,
            descending=flt.sort_dir != "asc",
            change_filter=change_filter,
        )
        return _validate(
            CurrentCrypto,
            [
                {
                    "name": r.name,
                    "symbol": r.symbol,
                    "price": r.price,
                    "marketCap": r.market_cap,
                    "change24h": r.change_24h,
                    "updatedAt": as_utc(r.updated_at) if r.updated_at else None,
                }
                for r in rows
            ],
        )

    def list_history(self, session: Session) -> List[HistoricalCrypto]:
        return self._history_schema(self.history_repo.list_all(session))

    def list_history_for_symbol(
        self, session: Session, symbol: str, range_label: Optional[str] = None
    ) -> List[HistoricalCrypto]:
        since = self._clock() - resolve_range(range_label)
        return self._history_schema(self.history_repo.list_for_symbol_since(session, symbol.lower(), since))

    def average_by_symbol(self, session: Session, start: Optional[str], end: Optional[str]) -> List[AverageCrypto]:
        if not start or not end:
            raise InvalidRange("start and end query parameters are required")
        start_ts = parse_datetime_param("start", start)
        end_ts = parse_datetime_param("end", end)
        if start_ts > end_ts:
            return []

        averages = self.history_repo.averages_between(session, start_ts, end_ts)
        return _validate(
            AverageCrypto,
            [
                {
                    "symbol": a.symbol,
                    "name": a.name,
                    "avgPrice": a.avg_price,
                    "avgMarketCap": a.avg_market_cap,
                    "avgChange24h": a.avg_change_24h,
                }
                for a in averages
            ],
        )

    @staticmethod
    def _history_schema(rows) -> List[HistoricalCrypto]:
        return _validate(
            HistoricalCrypto,
            [
                {
                    "name": r.name,
                    "symbol": r.symbol,
                    "price": r.price,
                    "marketCap": r.market_cap,
                    "change24h": r.change_24h,
                    "timestamp": as_utc(r.timestamp) if r.timestamp else None,
                }
                for r in rows
            ],
        )

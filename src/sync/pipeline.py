from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from api.coingecko_client import CoinQuote
from db.current_coins_repo import CurrentCoinRow, CurrentCoinsRepo
from db.db_conn import DbConn
from db.historical_coins_repo import HistoricalCoinRow, HistoricalCoinsRepo
from errors import StoreWriteFailure, SyncAlreadyRunning

logger = logging.getLogger(__name__)

DEFAULT_COIN_COUNT = 10


class MarketDataClient(Protocol):
    def fetch_top_coins(self, n: int = DEFAULT_COIN_COUNT) -> List[CoinQuote]:
        ...


@dataclass(frozen=True)
class SyncResult:
    coins_fetched: int
    snapshot_rows: int
    history_rows: int
    started_at: datetime
    finished_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncPipeline:
    """Fetch the top coins, replace the snapshot and append to history.

    Only one run executes at a time; a second caller gets
    ``SyncAlreadyRunning`` instead of waiting.
    """

    def __init__(
        self,
        client: MarketDataClient,
        db: DbConn,
        coin_count: int = DEFAULT_COIN_COUNT,
        current_repo: Optional[CurrentCoinsRepo] = None,
        history_repo: Optional[HistoricalCoinsRepo] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.db = db
        self.coin_count = coin_count
        self.current_repo = current_repo or CurrentCoinsRepo()
        self.history_repo = history_repo or HistoricalCoinsRepo()
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run_sync(self) -> SyncResult:
        if not self._lock.acquire(blocking=False):
            raise SyncAlreadyRunning("A sync is already in progress")
        try:
            return self._run()
        finally:
            self._lock.release()

    def _run(self) -> SyncResult:
        started_at = self._clock()
        logger.info("Syncing crypto data at %s", started_at.isoformat())

        # Upstream errors propagate before anything is written.
        coins = self.client.fetch_top_coins(self.coin_count)

        written_at = self._clock()
        try:
            with self.db.session_scope() as session:
                snapshot_rows = self.current_repo.replace_all(
                    session,
                    (
                        CurrentCoinRow(
                            name=c.name,
                            symbol=c.symbol.lower(),
                            price=c.current_price,
                            market_cap=c.market_cap,
                            change_24h=c.price_change_percentage_24h,
                            updated_at=written_at,
                        )
                        for c in coins
                    ),
                )
        except SQLAlchemyError as exc:
            raise StoreWriteFailure(f"Snapshot replace failed: {exc}") from exc

        try:
            with self.db.session_scope() as session:
                history_rows = self.history_repo.append_many(
                    session,
                    (
                        HistoricalCoinRow(
                            name=c.name,
                            symbol=c.symbol.lower(),
                            price=c.current_price,
                            market_cap=c.market_cap,
                            change_24h=c.price_change_percentage_24h,
                            timestamp=written_at,
                        )
                        for c in coins
                    ),
                )
        except SQLAlchemyError as exc:
            raise StoreWriteFailure(
                f"History append failed after snapshot was replaced: {exc}"
            ) from exc

        finished_at = self._clock()
        logger.info(
            "Sync successful: fetched=%d snapshot=%d history=%d in %.2fs",
            len(coins),
            snapshot_rows,
            history_rows,
            (finished_at - started_at).total_seconds(),
        )
        return SyncResult(
            coins_fetched=len(coins),
            snapshot_rows=snapshot_rows,
            history_rows=history_rows,
            started_at=started_at,
            finished_at=finished_at,
        )

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from services.crypto_query_service import CryptoQueryService, CurrentFilter
from services.schemas import AverageCrypto, CurrentCrypto, HistoricalCrypto, SyncResponse
from sync.pipeline import SyncPipeline
from web.deps import get_db, get_pipeline, get_query_service

router = APIRouter(prefix="/crypto", tags=["crypto"])


@router.get("/current", response_model=List[CurrentCrypto])
def list_current(
    search: str = "",
    sort_key: str = Query("marketCap", alias="sortKey"),
    sort_dir: str = Query("desc", alias="sortDir"),
    filter_change: str = Query("all", alias="filterChange"),
    session: Session = Depends(get_db),
    service: CryptoQueryService = Depends(get_query_service),
) -> List[CurrentCrypto]:
    """Current snapshot, searchable by name or symbol and sortable by any column."""
    return service.list_current(
        session,
        CurrentFilter(search=search, sort_key=sort_key, sort_dir=sort_dir, filter_change=filter_change),
    )


@router.get("/historical", response_model=List[HistoricalCrypto])
def list_historical(
    session: Session = Depends(get_db),
    service: CryptoQueryService = Depends(get_query_service),
) -> List[HistoricalCrypto]:
    """Every history row, newest first."""
    return service.list_history(session)


# Declared before /historical/{symbol} so "average" is not captured as a symbol.
@router.get("/historical/average", response_model=List[AverageCrypto])
def historical_average(
    start: Optional[str] = None,
    end: Optional[str] = None,
    session: Session = Depends(get_db),
    service: CryptoQueryService = Depends(get_query_service),
) -> List[AverageCrypto]:
    """Per-symbol averages over ``[start, end]``, e.g. ?start=2024-01-01T00:00:00&end=2024-01-03T00:00:00."""
    return service.average_by_symbol(session, start, end)


@router.get("/historical/{symbol}", response_model=List[HistoricalCrypto])
def historical_for_symbol(
    symbol: str,
    range_label: Optional[str] = Query(None, alias="range"),
    session: Session = Depends(get_db),
    service: CryptoQueryService = Depends(get_query_service),
) -> List[HistoricalCrypto]:
    """Chronological history of one coin over the last 1d, 3d, 7d or 30d."""
    return service.list_history_for_symbol(session, symbol, range_label)


@router.post("/sync", response_model=SyncResponse)
def trigger_sync(pipeline: SyncPipeline = Depends(get_pipeline)) -> SyncResponse:
    """Run a sync now and block until it finishes."""
    result = pipeline.run_sync()
    return SyncResponse(
        message="Sync successful",
        coinsFetched=result.coins_fetched,
        snapshotRows=result.snapshot_rows,
        historyRows=result.history_rows,
        startedAt=result.started_at,
        finishedAt=result.finished_at,
    )

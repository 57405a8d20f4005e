"""Response models returned by the query service and the HTTP layer."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CurrentCrypto(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    symbol: str
    price: float
    marketCap: float
    change24h: float
    updatedAt: datetime


class HistoricalCrypto(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    symbol: str
    price: float
    marketCap: float
    change24h: Optional[float] = None
    timestamp: datetime


class AverageCrypto(BaseModel):
    model_config = ConfigDict(extra="forbid")

    symbol: str
    name: str
    avgPrice: float
    avgMarketCap: float
    avgChange24h: Optional[float] = None


class SyncResponse(BaseModel):
    message: str
    coinsFetched: int
    snapshotRows: int
    historyRows: int
    startedAt: datetime
    finishedAt: datetime

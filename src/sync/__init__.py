"""Fetch-and-persist pipeline plus its hourly trigger."""

from sync.pipeline import SyncPipeline, SyncResult
from sync.scheduler import HourlySyncScheduler

__all__ = ["HourlySyncScheduler", "SyncPipeline", "SyncResult"]

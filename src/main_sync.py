"""CLI: Fetch the top coins from CoinGecko once and persist snapshot + history.

Examples:
    python src/main_sync.py --limit 10
    python src/main_sync.py --check            # database reachability and schema only
    python src/main_sync.py --create-tables    # bootstrap a local database, then sync
"""
from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from api.coingecko_client import CoinGeckoClient
from app_logging import configure_logging
from config import get_sync_coin_count, load_env_file
from db.current_coins_repo import CurrentCoinsRepo
from db.db_conn import DbConn
from db.historical_coins_repo import HistoricalCoinsRepo
from errors import CryptoTrackerError
from sync.pipeline import SyncPipeline

logger = logging.getLogger("main_sync")


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run one crypto sync cycle and exit")
    p.add_argument("--limit", type=int, default=None, help="How many coins to fetch (default SYNC_COIN_COUNT or 10)")
    p.add_argument("--check", action="store_true", help="Report database status and row counts without syncing")
    p.add_argument("--create-tables", action="store_true", help="Create tables from ORM metadata before syncing")
    p.add_argument("--echo", action="store_true", help="Enable SQLAlchemy engine echo")
    return p.parse_args(argv)


def check_database(db: DbConn) -> int:
    """Print reachability, Alembic revision and table sizes; non-zero when unusable."""
    if not db.test_connection():
        logger.error("Database unreachable")
        return 1

    rev = db.get_alembic_revision() or "none (tables created without Alembic?)"
    try:
        with db.session_scope() as s:
            current = CurrentCoinsRepo().count(s)
            history = HistoricalCoinsRepo().count(s)
    except SQLAlchemyError as exc:
        logger.error("Crypto tables missing or unreadable: %s", exc)
        return 1

    print(f"database=ok revision={rev} current_coins={current} historical_coins={history}")
    return 0


def main(argv=None) -> int:
    load_env_file()
    configure_logging()
    args = parse_args(argv)

    try:
        db = DbConn(echo=args.echo)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    if args.create_tables:
        db.create_all()

    if args.check:
        return check_database(db)

    pipeline = SyncPipeline(CoinGeckoClient(), db, coin_count=args.limit or get_sync_coin_count())
    try:
        result = pipeline.run_sync()
    except CryptoTrackerError as exc:
        logger.error("Sync failed: %s", exc)
        return 1

    print(
        f"Fetched {result.coins_fetched} coins, replaced {result.snapshot_rows} snapshot rows, "
        f"appended {result.history_rows} history rows at {result.finished_at.isoformat()}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

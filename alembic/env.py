"""Alembic environment for the crypto tracker tables.

The URL comes from ``config.get_database_url`` unless overridden on the
command line, e.g. ``alembic -x db_url=sqlite:///local.db upgrade head``.
"""
from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from config import get_database_url, load_env_file  # type: ignore  # noqa: E402
from db.base import Base  # type: ignore  # noqa: E402
from db.db_conn import DbConn  # type: ignore  # noqa: E402
from db.poco import current_coin, historical_coin  # noqa: E402,F401  # registers both tables

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def resolve_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("db_url")
    if override:
        return override
    load_env_file()
    url = get_database_url()
    if not url:
        raise RuntimeError("No database for migrations: set DATABASE_URL, DB_* or pass -x db_url=...")
    return url


def _configure(**kwargs) -> None:
    # SQLite cannot ALTER most constraints in place.
    batch = resolve_url().startswith("sqlite")
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=batch,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=resolve_url(), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    db = DbConn(resolve_url())
    with db.engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
    db.engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

"""Utility helpers for loading project configuration.

This module is the single source of truth for environment-driven
configuration such as the upstream market data URL, database connection
details and inbound rate limits.

Usage:
- Call ``load_env_file()`` once at startup to load ``resources/.env``.
- Use ``get_env`` for simple lookups.
- Use the convenience helpers like ``get_coingecko_config`` and
  ``get_database_url`` for normalized access.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_COINGECKO_API_URL = "https://api.coingecko.com/api/v3/coins/markets"


def load_env_file(env_path: Optional[Path] = None) -> None:
    """
    Load environment variables from an .env file when it exists.

    Parameters:
        env_path: Optional path to the .env file. Defaults to resources/.env.
    """
    env_file = env_path or Path("resources/.env")
    if Path(env_file).exists():
        load_dotenv(env_file)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Fetch an environment variable with an optional default."""
    return os.getenv(name, default)


def get_int_env(name: str, default: int) -> int:
    raw = get_env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def get_bool_env(name: str, default: bool) -> bool:
    raw = get_env(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ----- Server helpers -----

def get_port() -> int:
    """Listen port for the HTTP server (PORT, default 4000)."""
    return get_int_env("PORT", 4000)


def get_host() -> str:
    return get_env("HOST", "0.0.0.0") or "0.0.0.0"


def get_log_level() -> str:
    return (get_env("LOG_LEVEL", "INFO") or "INFO").upper()


@dataclass(frozen=True)
class RateLimitConfig:
    window_ms: int = 60000
    max_requests: int = 100


def get_rate_limit_config() -> RateLimitConfig:
    """Return inbound throttling settings.

    Keys:
    - RATE_LIMIT_WINDOW_MS (default 60000)
    - RATE_LIMIT_MAX (default 100)
    """
    return RateLimitConfig(
        window_ms=get_int_env("RATE_LIMIT_WINDOW_MS", 60000),
        max_requests=get_int_env("RATE_LIMIT_MAX", 100),
    )


# ----- Upstream / sync helpers -----

@dataclass(frozen=True)
class CoinGeckoConfig:
    api_url: str = DEFAULT_COINGECKO_API_URL
    timeout_seconds: float = 10.0


def get_coingecko_config() -> CoinGeckoConfig:
    """Return CoinGecko-related configuration gathered from environment.

    Keys:
    - COINGECKO_API_URL (defaults to the public markets endpoint)
    - COINGECKO_TIMEOUT_SECONDS (default 10)
    """
    timeout_raw = get_env("COINGECKO_TIMEOUT_SECONDS")
    return CoinGeckoConfig(
        api_url=get_env("COINGECKO_API_URL") or DEFAULT_COINGECKO_API_URL,
        timeout_seconds=float(timeout_raw) if timeout_raw else 10.0,
    )


def get_sync_coin_count() -> int:
    return get_int_env("SYNC_COIN_COUNT", 10)


def is_scheduler_enabled() -> bool:
    return get_bool_env("SYNC_SCHEDULER_ENABLED", True)


# ----- Database helpers -----

def get_database_url() -> Optional[str]:
    """Return a SQLAlchemy database URL.

    Prefers ``DATABASE_URL`` if present; otherwise constructs a PostgreSQL DSN from:
    - DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD
    """
    db_url = get_env("DATABASE_URL")
    if db_url:
        return db_url

    host = get_env("DB_HOST")
    port = get_env("DB_PORT") or "5432"
    name = get_env("DB_NAME")
    user = get_env("DB_USER")
    password = get_env("DB_PASSWORD")

    if not (host and name and user and password):
        return None

    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"

"""CoinGecko market data client responsible for top-coin retrieval."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, ValidationError

from errors import UpstreamMalformed, UpstreamUnavailable

logger = logging.getLogger(__name__)


class CoinQuote(BaseModel):
    """One row of the CoinGecko ``/coins/markets`` response."""

    id: str
    name: str
    symbol: str
    current_price: float
    market_cap: float
    price_change_percentage_24h: float


class CoinGeckoClient:
    """High level helper for CoinGecko market listings.

    Reads the endpoint URL and timeout from the central config module (see
    ``src/config.py``) unless they are passed explicitly. A ``requests``
    session can be injected, which is how tests stub the upstream API.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Create a new CoinGecko client.

        Parameters:
            api_url: Markets endpoint. Defaults to COINGECKO_API_URL or the public endpoint.
            timeout: Request timeout in seconds. Defaults to COINGECKO_TIMEOUT_SECONDS.
            session: Optional session used for outbound calls.
        """
        from config import get_coingecko_config

        cfg = get_coingecko_config()
        self.api_url = api_url or cfg.api_url
        self.timeout = timeout if timeout is not None else cfg.timeout_seconds
        self._session = session or requests.Session()

    def fetch_top_coins(self, n: int = 10) -> List[CoinQuote]:
        """
        Retrieve the top ``n`` coins ordered by market capitalization.

        Parameters:
            n: Number of coins to request (one page).

        Returns:
            Parsed quotes in the order returned by the provider.

        Raises:
            UpstreamUnavailable: When the request fails or returns a non-success status.
            UpstreamMalformed: When the body is not a list of coin quotes.
        """
        params: Dict[str, Any] = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": n,
            "page": 1,
            "price_change_percentage": "24h",
        }

        try:
            response = self._session.get(
                self.api_url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise UpstreamUnavailable(f"Failed to retrieve markets: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamMalformed(f"Markets response is not JSON: {exc}") from exc

        if not isinstance(payload, list):
            raise UpstreamMalformed(f"Expected a list of coins, got {type(payload).__name__}")

        try:
            quotes = [CoinQuote.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise UpstreamMalformed(f"Unexpected coin shape: {exc}") from exc

        logger.debug("Fetched %d coins from %s", len(quotes), self.api_url)
        return quotes

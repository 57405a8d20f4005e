"""Tests for the CoinGecko market data client."""
import pytest
import requests

from api.coingecko_client import CoinGeckoClient, CoinQuote
from errors import UpstreamMalformed, UpstreamUnavailable

BTC = {
    "id": "bitcoin",
    "name": "Bitcoin",
    "symbol": "btc",
    "current_price": 65000.5,
    "market_cap": 1.28e12,
    "price_change_percentage_24h": -1.25,
    "total_volume": 3.1e10,
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200, json_error=None) -> None:
        self.payload = payload
        self.status_code = status_code
        self.json_error = json_error

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.json_error:
            raise self.json_error
        return self.payload


class FakeSession:
    """Lightweight stub to emulate requests.Session.get."""

    def __init__(self, response=None, exception=None) -> None:
        self.response = response or FakeResponse(payload=[])
        self.exception = exception
        self.last_url = None
        self.last_kwargs = None

    def get(self, url, **kwargs):
        self.last_url = url
        self.last_kwargs = kwargs
        if self.exception:
            raise self.exception
        return self.response


def test_fetch_top_coins_passes_parameters_and_parses_quotes():
    session = FakeSession(response=FakeResponse(payload=[BTC]))
    client = CoinGeckoClient(api_url="https://example.test/coins/markets", timeout=3, session=session)

    quotes = client.fetch_top_coins(10)

    assert quotes == [
        CoinQuote(
            id="bitcoin",
            name="Bitcoin",
            symbol="btc",
            current_price=65000.5,
            market_cap=1.28e12,
            price_change_percentage_24h=-1.25,
        )
    ]
    assert session.last_url == "https://example.test/coins/markets"
    assert session.last_kwargs["params"] == {
        "vs_currency": "usd",
        "order": "market_cap_desc",
        "per_page": 10,
        "page": 1,
        "price_change_percentage": "24h",
    }
    assert session.last_kwargs["timeout"] == 3


def test_default_url_comes_from_environment(monkeypatch):
    monkeypatch.setenv("COINGECKO_API_URL", "https://mirror.test/markets")
    client = CoinGeckoClient(session=FakeSession())

    assert client.api_url == "https://mirror.test/markets"


def test_fetch_top_coins_raises_unavailable_on_network_error():
    session = FakeSession(exception=requests.ConnectionError("boom"))
    client = CoinGeckoClient(session=session)

    with pytest.raises(UpstreamUnavailable) as err:
        client.fetch_top_coins()

    assert "Failed to retrieve markets" in str(err.value)


def test_fetch_top_coins_raises_unavailable_on_http_error():
    session = FakeSession(response=FakeResponse(payload={"error": "rate limited"}, status_code=429))
    client = CoinGeckoClient(session=session)

    with pytest.raises(UpstreamUnavailable):
        client.fetch_top_coins()


def test_fetch_top_coins_raises_malformed_on_non_json_body():
    session = FakeSession(response=FakeResponse(json_error=ValueError("Expecting value")))
    client = CoinGeckoClient(session=session)

    with pytest.raises(UpstreamMalformed):
        client.fetch_top_coins()


def test_fetch_top_coins_raises_malformed_when_body_is_not_a_list():
    session = FakeSession(response=FakeResponse(payload={"status": {"error_code": 1}}))
    client = CoinGeckoClient(session=session)

    with pytest.raises(UpstreamMalformed) as err:
        client.fetch_top_coins()

    assert "Expected a list" in str(err.value)


def test_fetch_top_coins_raises_malformed_on_missing_fields():
    broken = {k: v for k, v in BTC.items() if k != "market_cap"}
    session = FakeSession(response=FakeResponse(payload=[broken]))
    client = CoinGeckoClient(session=session)

    with pytest.raises(UpstreamMalformed):
        client.fetch_top_coins()

"""Exception taxonomy shared by the client, sync pipeline and HTTP layer."""
from __future__ import annotations


class CryptoTrackerError(RuntimeError):
    """Base class for errors raised by the crypto tracker."""


class UpstreamError(CryptoTrackerError):
    """Raised when the market data provider cannot supply usable data."""


class UpstreamUnavailable(UpstreamError):
    """Raised on network failures or non-success HTTP status from the provider."""


class UpstreamMalformed(UpstreamError):
    """Raised when the provider response cannot be parsed into coin quotes."""


class StoreWriteFailure(CryptoTrackerError):
    """Raised when a snapshot replace or history append fails part way."""


class SyncAlreadyRunning(CryptoTrackerError):
    """Raised when a sync is requested while another one is still in flight."""


class InvalidQueryParameter(CryptoTrackerError):
    """Raised for client supplied query parameters that cannot be honoured."""


class InvalidRange(InvalidQueryParameter):
    """Raised when an average window is missing a bound or cannot be parsed."""


class InvalidDataShape(CryptoTrackerError):
    """Raised when stored rows fail validation against the response schema."""

"""Error taxonomy for the stock data layer."""

from __future__ import annotations


class StockDataError(Exception):
    """Base class for every error raised by this package."""


class InvalidRequest(StockDataError):
    """The caller asked for something malformed (e.g. no symbol)."""


class NoDataAvailable(StockDataError):
    """A dataset could not be derived, e.g. no qualifying close for an ATH."""


class FetchError(StockDataError):
    """An upstream provider failed to produce a usable result.

    Always recovered inside StockDataService: the next provider variant is
    tried, and the demo generator covers total exhaustion.
    """

    def __init__(self, reason: str, provider: str | None = None) -> None:
        self.reason = reason
        self.provider = provider
        super().__init__(f"{provider}: {reason}" if provider else reason)


class UpstreamTimeout(FetchError):
    """The request exceeded its deadline and was cancelled."""


class UpstreamMalformed(FetchError):
    """The payload was unparseable or missing required fields."""


class UpstreamUnavailable(FetchError):
    """Transport error, non-2xx status, or no identifier for this upstream."""

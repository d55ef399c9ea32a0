"""Abstract interfaces for upstream stock data providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from .models import Instrument, PricePoint, Quote


class QuoteProvider(ABC):
    """Contract for sources of current quotes.

    StockDataService holds an ordered list of these and uses the first one
    that succeeds; results from different providers are never merged.

    Usage:
        provider = LiveApiQuoteProvider()
        try:
            quote = await provider.fetch(registry.lookup("^NSEI"))
        except FetchError:
            ...  # try the next provider
    """

    name: str = "quote"

    @abstractmethod
    async def fetch(self, instrument: Instrument) -> Quote:
        """Return the current quote for the instrument.

        Issues a single upstream request bounded by the provider's timeout.
        Raises FetchError (UpstreamTimeout, UpstreamMalformed or
        UpstreamUnavailable) on any failure, including a non-positive price.
        """


class HistoryProvider(ABC):
    """Contract for sources of daily close history."""

    name: str = "history"

    @abstractmethod
    async def fetch_series(
        self,
        instrument: Instrument,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[PricePoint]:
        """Return daily bars between from_date and to_date, oldest first.

        When no range is given the provider returns as much history as it can
        (everything for the chart API, a bounded lookback for the brokerage).
        Raises FetchError on any failure.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

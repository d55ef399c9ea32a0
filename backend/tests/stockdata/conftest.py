"""Fixtures for stock data tests.

Provides canned chart-API payloads, a controllable clock and in-memory
provider doubles so the service can be tested without network access.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import httpx
import pytest

from app.stockdata.errors import FetchError
from app.stockdata.interface import HistoryProvider, QuoteProvider
from app.stockdata.models import Instrument, MarketState, PricePoint, Quote

# Wednesday 2024-01-03 10:00 IST
WEDNESDAY_SESSION_UTC = datetime(2024, 1, 3, 4, 30, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock returning a settable epoch-seconds value."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubQuoteProvider(QuoteProvider):
    """QuoteProvider returning a fixed quote or raising a fixed error."""

    def __init__(self, name: str, quote: Quote | None = None, error: FetchError | None = None):
        self.name = name
        self._quote = quote
        self._error = error
        self.calls: list[str] = []

    async def fetch(self, instrument: Instrument) -> Quote:
        self.calls.append(instrument.symbol)
        if self._error is not None:
            raise self._error
        return self._quote


class StubHistoryProvider(HistoryProvider):
    """HistoryProvider returning a fixed series or raising a fixed error."""

    def __init__(
        self,
        name: str,
        series: list[PricePoint] | None = None,
        error: FetchError | None = None,
    ):
        self.name = name
        self._series = series or []
        self._error = error
        self.calls: list[str] = []

    async def fetch_series(self, instrument, from_date=None, to_date=None):
        self.calls.append(instrument.symbol)
        if self._error is not None:
            raise self._error
        return list(self._series)


def make_quote(symbol: str = "^NSEI", price: float = 24150.5, previous_close: float = 24000.0) -> Quote:
    return Quote.build(
        symbol=symbol,
        price=price,
        previous_close=previous_close,
        day_high=price + 50,
        day_low=price - 50,
        volume=123456,
        market_state=MarketState.REGULAR,
        timestamp="2024-01-03T04:30:00.000Z",
    )


def make_series() -> list[PricePoint]:
    return [
        PricePoint(date=date(2023, 12, 1), close=20000.0, volume=1000),
        PricePoint(date=date(2023, 12, 15), close=21500.25, volume=1500),
        PricePoint(date=date(2023, 12, 29), close=21700.0, volume=0),
        PricePoint(date=date(2024, 1, 2), close=21400.0, volume=900),
    ]


def chart_payload(
    symbol: str = "^NSEI",
    price: float | None = 101.0,
    previous_close: float | None = 100.0,
    **meta,
) -> dict:
    """Minimal chart-API response carrying a quote in its meta block."""
    body = {
        "symbol": symbol,
        "currency": "INR",
        "regularMarketPrice": price,
        "previousClose": previous_close,
        "regularMarketDayHigh": 102.5,
        "regularMarketDayLow": 99.25,
        "regularMarketVolume": 5000,
        "marketState": "REGULAR",
    }
    body.update(meta)
    return {"chart": {"result": [{"meta": body}], "error": None}}


def history_payload(rows: list[tuple[int, float | None, int | None]]) -> dict:
    """Chart-API response with daily (epoch, close, volume) rows."""
    return {
        "chart": {
            "result": [
                {
                    "meta": {"symbol": "^NSEI"},
                    "timestamp": [r[0] for r in rows],
                    "indicators": {
                        "quote": [
                            {
                                "close": [r[1] for r in rows],
                                "volume": [r[2] for r in rows],
                            }
                        ]
                    },
                }
            ],
            "error": None,
        }
    }


def json_transport(payload: dict, status_code: int = 200, seen: list | None = None) -> httpx.MockTransport:
    """MockTransport that answers every request with the given JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def nsei() -> Instrument:
    return Instrument(symbol="^NSEI", token=256265, label="NIFTY 50", kind="index")

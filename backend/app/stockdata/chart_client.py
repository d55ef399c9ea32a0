"""Yahoo Finance chart API providers (primary host and mirror host)."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timezone
from typing import Any
from urllib.parse import quote as url_quote

import httpx

from .errors import UpstreamMalformed, UpstreamTimeout, UpstreamUnavailable
from .interface import HistoryProvider, QuoteProvider
from .models import Instrument, MarketState, PricePoint, Quote, optional_float

logger = logging.getLogger(__name__)

LIVE_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart"
MIRROR_CHART_URL = "https://query2.finance.yahoo.com/v8/finance/chart"

QUOTE_TIMEOUT = 8.0
HISTORY_TIMEOUT = 15.0

# The chart API rejects requests without browser-like headers
DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://finance.yahoo.com/",
}


class ChartApiClient:
    """Thin async wrapper around GET {base_url}/{symbol}.

    Every call is bounded by `timeout` seconds end to end; a request still
    running at the deadline is cancelled. httpx and decoding failures are
    translated into the FetchError taxonomy.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        name: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._name = name
        self._transport = transport  # Injected by tests (httpx.MockTransport)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    async def get_chart(self, symbol: str, params: dict[str, Any] | None = None) -> dict:
        """Fetch the chart payload for a symbol and return chart.result[0]."""
        try:
            payload = await asyncio.wait_for(self._request(symbol, params), timeout=self._timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeout(f"no response within {self._timeout:.0f}s", self._name) from e
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(f"HTTP {e.response.status_code}", self._name) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"{type(e).__name__}: {e}", self._name) from e
        except ValueError as e:
            raise UpstreamMalformed("response is not valid JSON", self._name) from e

        try:
            result = payload["chart"]["result"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamMalformed("missing chart.result", self._name) from e
        if not isinstance(result, dict):
            raise UpstreamMalformed("chart.result[0] is not an object", self._name)
        return result

    async def _request(self, symbol: str, params: dict[str, Any] | None) -> Any:
        url = f"{self._base_url}/{url_quote(symbol, safe='')}"
        async with httpx.AsyncClient(
            timeout=self._timeout,
            headers=DEFAULT_HEADERS,
            transport=self._transport,
        ) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()


def parse_chart_quote(result: dict, provider: str = "chart", symbol: str | None = None) -> Quote:
    """Build a Quote from chart.result[0].meta.

    Falls back to the previous close when there is no regular-market price,
    and to chartPreviousClose when previousClose is absent. `symbol` is used
    when the meta block does not name the instrument.
    """
    meta = result.get("meta")
    if not isinstance(meta, dict):
        raise UpstreamMalformed("missing meta", provider)

    try:
        price = optional_float(meta.get("regularMarketPrice") or meta.get("previousClose"))
        previous_close = optional_float(meta.get("previousClose") or meta.get("chartPreviousClose"))
        day_high = optional_float(meta.get("regularMarketDayHigh"))
        day_low = optional_float(meta.get("regularMarketDayLow"))
        volume = optional_float(meta.get("regularMarketVolume"))
    except (TypeError, ValueError) as e:
        raise UpstreamMalformed(f"non-numeric quote field: {e}", provider) from e
    if price is None or price <= 0:
        raise UpstreamMalformed(f"invalid price {price!r}", provider)
    if previous_close is None:
        raise UpstreamMalformed("missing previous close", provider)

    upstream_symbol = meta.get("symbol")
    symbol = upstream_symbol if isinstance(upstream_symbol, str) and upstream_symbol else symbol
    if not symbol:
        raise UpstreamMalformed("missing symbol", provider)

    return Quote.build(
        symbol=symbol,
        price=price,
        previous_close=previous_close,
        day_high=day_high,
        day_low=day_low,
        volume=volume,
        market_state=MarketState.from_upstream(meta.get("marketState")),
        currency=meta.get("currency") if isinstance(meta.get("currency"), str) else None,
    )


def parse_chart_series(result: dict, provider: str = "chart") -> list[PricePoint]:
    """Zip timestamps with the daily close/volume arrays. Dates are UTC.

    Nulls are kept (the ATH scan skips them); any other non-numeric close or
    volume makes the whole payload malformed.
    """
    timestamps = result.get("timestamp")
    try:
        bars = result["indicators"]["quote"][0]
        closes = bars["close"]
        volumes = bars["volume"]
    except (KeyError, IndexError, TypeError) as e:
        raise UpstreamMalformed("missing indicators.quote close/volume", provider) from e
    if not timestamps or closes is None or volumes is None:
        raise UpstreamMalformed("empty timestamp/close/volume arrays", provider)

    series = []
    try:
        for ts, close, volume in zip(timestamps, closes, volumes):
            series.append(
                PricePoint(
                    date=datetime.fromtimestamp(ts, tz=timezone.utc).date(),
                    close=optional_float(close),
                    volume=optional_float(volume),
                )
            )
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise UpstreamMalformed(f"bad daily bar: {e}", provider) from e
    return series


def _epoch(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


class ChartQuoteProvider(QuoteProvider):
    """QuoteProvider backed by the chart API's meta block."""

    name = "chart"

    def __init__(
        self,
        base_url: str,
        timeout: float = QUOTE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = ChartApiClient(base_url, timeout, self.name, transport)

    async def fetch(self, instrument: Instrument) -> Quote:
        result = await self._client.get_chart(instrument.symbol)
        quote = parse_chart_quote(result, self.name, instrument.symbol)
        logger.debug("%s: %s at %.2f", self.name, instrument.symbol, quote.price)
        return quote


class ChartHistoryProvider(HistoryProvider):
    """HistoryProvider backed by the chart API's daily indicators."""

    name = "chart"

    def __init__(
        self,
        base_url: str,
        timeout: float = HISTORY_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = ChartApiClient(base_url, timeout, self.name, transport)

    async def fetch_series(
        self,
        instrument: Instrument,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[PricePoint]:
        if from_date is None:
            params: dict[str, Any] = {"range": "max", "interval": "1d"}
        else:
            to_date = to_date or datetime.now(timezone.utc).date()
            params = {"period1": _epoch(from_date), "period2": _epoch(to_date), "interval": "1d"}
        result = await self._client.get_chart(instrument.symbol, params)
        series = parse_chart_series(result, self.name)
        logger.debug("%s: %d daily bars for %s", self.name, len(series), instrument.symbol)
        return series


class LiveApiQuoteProvider(ChartQuoteProvider):
    name = "live-api"

    def __init__(self, base_url: str = LIVE_CHART_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)


class MirrorApiQuoteProvider(ChartQuoteProvider):
    name = "mirror-api"

    def __init__(self, base_url: str = MIRROR_CHART_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)


class LiveApiHistoryProvider(ChartHistoryProvider):
    name = "live-api"

    def __init__(self, base_url: str = LIVE_CHART_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)


class MirrorApiHistoryProvider(ChartHistoryProvider):
    name = "mirror-api"

    def __init__(self, base_url: str = MIRROR_CHART_URL, **kwargs: Any) -> None:
        super().__init__(base_url, **kwargs)

"""Brokerage (Kite Connect) providers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from typing import Any, Protocol, TypeVar

from .errors import UpstreamMalformed, UpstreamTimeout, UpstreamUnavailable
from .interface import HistoryProvider, QuoteProvider
from .market_clock import market_state
from .models import Instrument, PricePoint, Quote, optional_float

logger = logging.getLogger(__name__)

BROKER_QUOTE_TIMEOUT = 10.0
BROKER_HISTORY_TIMEOUT = 15.0
HISTORY_LOOKBACK_YEARS = 5

T = TypeVar("T")


class BrokerSession(Protocol):
    """The two brokerage calls the providers rely on. Both are blocking."""

    def get_quote(self, instruments: list[int | str]) -> dict: ...

    def get_historical_data(
        self, token: int, from_date: date, to_date: date, interval: str = "day"
    ) -> list[dict]: ...


class KiteSession:
    """BrokerSession over an authenticated kiteconnect.KiteConnect client.

    The access token is obtained out of band (login flow) and passed in.
    `timeout` bounds each SDK HTTP request, so a call abandoned by the
    provider deadline does not keep its worker thread busy past it.
    """

    def __init__(
        self, api_key: str, access_token: str, timeout: float = BROKER_QUOTE_TIMEOUT
    ) -> None:
        # Lazy import: kiteconnect is only needed when brokerage data is enabled.
        from kiteconnect import KiteConnect

        if not access_token:
            raise ValueError("Missing Kite Connect access token")
        self._kite = KiteConnect(api_key=api_key, timeout=timeout)
        self._kite.set_access_token(access_token)

    def get_quote(self, instruments: list[int | str]) -> dict:
        return self._kite.quote(instruments)

    def get_historical_data(
        self, token: int, from_date: date, to_date: date, interval: str = "day"
    ) -> list[dict]:
        return self._kite.historical_data(token, from_date, to_date, interval)


class _BrokerCall:
    """Runs a blocking session call in a thread under a deadline."""

    def __init__(self, timeout: float, name: str) -> None:
        self._timeout = timeout
        self._name = name

    async def __call__(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeout(f"no response within {self._timeout:.0f}s", self._name) from e
        except Exception as e:
            # kiteconnect raises its own exception tree (TokenException,
            # NetworkException, ...) plus requests errors underneath.
            raise UpstreamUnavailable(f"{type(e).__name__}: {e}", self._name) from e


def _require_token(instrument: Instrument, provider: str) -> int:
    if instrument.token is None:
        raise UpstreamUnavailable(f"no instrument token for {instrument.symbol}", provider)
    return instrument.token


class BrokerQuoteProvider(QuoteProvider):
    """QuoteProvider backed by the brokerage quote call.

    The brokerage has no session label of its own, so market state comes
    from the exchange clock.
    """

    name = "broker"

    def __init__(self, session: BrokerSession, timeout: float = BROKER_QUOTE_TIMEOUT) -> None:
        self._session = session
        self._call = _BrokerCall(timeout, self.name)

    async def fetch(self, instrument: Instrument) -> Quote:
        token = _require_token(instrument, self.name)
        response = await self._call(self._session.get_quote, [token])

        if not isinstance(response, dict):
            raise UpstreamMalformed("quote response is not an object", self.name)
        data = response.get(str(token)) or response.get(token)
        if not isinstance(data, dict):
            raise UpstreamMalformed(f"no quote for token {token}", self.name)
        ohlc = data.get("ohlc") or {}
        if not isinstance(ohlc, dict):
            raise UpstreamMalformed("ohlc is not an object", self.name)
        try:
            price = optional_float(data.get("last_price"))
            previous_close = optional_float(ohlc.get("close"))
            day_high = optional_float(ohlc.get("high"))
            day_low = optional_float(ohlc.get("low"))
            volume = optional_float(data.get("volume"))
        except (TypeError, ValueError) as e:
            raise UpstreamMalformed(f"non-numeric quote field: {e}", self.name) from e
        if price is None or price <= 0:
            raise UpstreamMalformed(f"invalid price {price!r}", self.name)

        return Quote.build(
            symbol=instrument.symbol,
            price=price,
            previous_close=previous_close or price,
            day_high=day_high,
            day_low=day_low,
            volume=volume,
            market_state=market_state(),
            currency="INR",
        )


class BrokerHistoryProvider(HistoryProvider):
    """HistoryProvider backed by brokerage daily candles.

    The brokerage requires an explicit bounded range, so an open-ended
    request becomes a fixed lookback ending today.
    """

    name = "broker"

    def __init__(
        self,
        session: BrokerSession,
        timeout: float = BROKER_HISTORY_TIMEOUT,
        lookback_years: int = HISTORY_LOOKBACK_YEARS,
    ) -> None:
        self._session = session
        self._call = _BrokerCall(timeout, self.name)
        self._lookback = timedelta(days=365 * lookback_years)

    async def fetch_series(
        self,
        instrument: Instrument,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[PricePoint]:
        token = _require_token(instrument, self.name)
        to_date = to_date or datetime.now(timezone.utc).date()
        from_date = from_date or to_date - self._lookback

        candles = await self._call(
            self._session.get_historical_data, token, from_date, to_date, "day"
        )
        if not isinstance(candles, list):
            raise UpstreamMalformed("historical data is not a list", self.name)

        series = []
        for candle in candles:
            if not isinstance(candle, dict):
                raise UpstreamMalformed(f"bad candle {candle!r}", self.name)
            try:
                day = candle["date"]
                if isinstance(day, datetime):
                    day = day.date()
                elif isinstance(day, str):
                    day = date.fromisoformat(day[:10])
                elif not isinstance(day, date):
                    raise TypeError(f"unsupported date {day!r}")
                close = optional_float(candle.get("close"))
                volume = optional_float(candle.get("volume"))
            except (KeyError, TypeError, ValueError) as e:
                raise UpstreamMalformed(f"bad candle {candle!r}", self.name) from e
            series.append(PricePoint(date=day, close=close, volume=volume))
        logger.debug("%s: %d daily candles for %s", self.name, len(series), instrument.symbol)
        return series

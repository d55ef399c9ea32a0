"""Stock data orchestration: cache, provider chains, demo fallback."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from .ath import compute_ath
from .cache import ATH_TTL_SECONDS, QUOTE_TTL_SECONDS, TTLCache
from .demo import DemoDataGenerator
from .errors import FetchError, InvalidRequest
from .instruments import InstrumentRegistry
from .interface import HistoryProvider, QuoteProvider
from .market_clock import is_market_open, market_state, refresh_interval_millis
from .models import AllTimeHigh, Instrument, Quote, StockResult

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StockDataService:
    """Answers "current price + all-time high" for a symbol.

    Per query:
      1. Quote and ATH are resolved concurrently, each from its own cache.
      2. A cache miss walks that dataset's provider chain in order and stops
         at the first success. Provider failures are logged and skipped.
      3. Successful results are written back to their cache (an ATH only if
         one could be computed).
      4. If no quote provider succeeds, the ATH is dropped and a demo result
         is returned instead, so live and synthetic data never mix.

    Caches belong to the instance; pass your own to share or inspect them.
    """

    def __init__(
        self,
        quote_providers: Sequence[QuoteProvider],
        history_providers: Sequence[HistoryProvider],
        quote_cache: TTLCache[Quote] | None = None,
        ath_cache: TTLCache[AllTimeHigh] | None = None,
        registry: InstrumentRegistry | None = None,
        demo: DemoDataGenerator | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._quote_providers = list(quote_providers)
        self._history_providers = list(history_providers)
        self._quote_cache = quote_cache if quote_cache is not None else TTLCache(QUOTE_TTL_SECONDS)
        self._ath_cache = ath_cache if ath_cache is not None else TTLCache(ATH_TTL_SECONDS)
        self._registry = registry or InstrumentRegistry()
        self._demo = demo or DemoDataGenerator()
        self._clock = clock

    @property
    def registry(self) -> InstrumentRegistry:
        return self._registry

    @property
    def quote_providers(self) -> list[QuoteProvider]:
        return list(self._quote_providers)

    @property
    def history_providers(self) -> list[HistoryProvider]:
        return list(self._history_providers)

    async def query_stock(self, symbol: str | None) -> StockResult:
        """Return a StockResult for symbol. Never raises for missing live data.

        Raises InvalidRequest if symbol is missing or blank.
        """
        if not isinstance(symbol, str) or not symbol.strip():
            raise InvalidRequest("Symbol parameter is required")

        instrument = self._registry.lookup(symbol)
        logger.info("Processing request for symbol: %s", instrument.symbol)

        quote, ath = await asyncio.gather(
            self._current_quote(instrument),
            self._all_time_high(instrument),
        )

        if quote is None:
            logger.warning("Live data failed, returning demo data for %s", instrument.symbol)
            return self._demo.generate(instrument.symbol, self._clock())

        return StockResult.live(quote, ath)

    def market_status(self, now_utc: datetime | None = None) -> dict:
        now_utc = now_utc or self._clock()
        return {
            "isOpen": is_market_open(now_utc),
            "marketState": market_state(now_utc).value,
            "refreshIntervalMillis": refresh_interval_millis(now_utc),
        }

    # --- Internal ---

    async def _current_quote(self, instrument: Instrument) -> Quote | None:
        cached = self._quote_cache.get(instrument.symbol)
        if cached is not None:
            logger.debug("Quote cache hit for %s", instrument.symbol)
            return cached

        for provider in self._quote_providers:
            try:
                quote = await provider.fetch(instrument)
            except FetchError as e:
                logger.warning("Quote from %s failed for %s: %s", provider.name, instrument.symbol, e)
                continue
            self._quote_cache.set(instrument.symbol, quote)
            logger.info("Quote for %s from %s: %.2f", instrument.symbol, provider.name, quote.price)
            return quote

        return None

    async def _all_time_high(self, instrument: Instrument) -> AllTimeHigh | None:
        cached = self._ath_cache.get(instrument.symbol)
        if cached is not None:
            logger.debug("ATH cache hit for %s", instrument.symbol)
            return cached

        for provider in self._history_providers:
            try:
                series = await provider.fetch_series(instrument)
            except FetchError as e:
                logger.warning("History from %s failed for %s: %s", provider.name, instrument.symbol, e)
                continue

            ath = compute_ath(series)
            if ath is None:
                # A series without qualifying closes is treated like a failed
                # fetch; the next provider may have volume data.
                logger.warning("No qualifying closes from %s for %s", provider.name, instrument.symbol)
                continue

            self._ath_cache.set(instrument.symbol, ath)
            logger.info(
                "ATH for %s from %s: %.2f on %s",
                instrument.symbol,
                provider.name,
                ath.price,
                ath.date_formatted,
            )
            return ath

        logger.warning("No ATH available for %s", instrument.symbol)
        return None

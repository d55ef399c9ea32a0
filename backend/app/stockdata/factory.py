"""Factory for wiring a StockDataService from the environment."""

from __future__ import annotations

import logging
import os

from .broker_client import BrokerHistoryProvider, BrokerQuoteProvider, BrokerSession
from .cache import ATH_TTL_SECONDS, QUOTE_TTL_SECONDS, TTLCache
from .chart_client import (
    HISTORY_TIMEOUT,
    QUOTE_TIMEOUT,
    LiveApiHistoryProvider,
    LiveApiQuoteProvider,
    MirrorApiHistoryProvider,
    MirrorApiQuoteProvider,
)
from .interface import HistoryProvider, QuoteProvider
from .service import StockDataService

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


def create_broker_session() -> BrokerSession | None:
    """KiteSession if KITE_API_KEY and KITE_ACCESS_TOKEN are both set, else None."""
    api_key = os.environ.get("KITE_API_KEY", "").strip()
    access_token = os.environ.get("KITE_ACCESS_TOKEN", "").strip()
    if not (api_key and access_token):
        return None

    from .broker_client import KiteSession

    return KiteSession(api_key=api_key, access_token=access_token)


def create_stock_data_service(broker_session: BrokerSession | None = None) -> StockDataService:
    """Build a StockDataService from environment variables.

    Provider order: live chart API, mirror chart API, then the brokerage when
    a session is given or KITE_API_KEY + KITE_ACCESS_TOKEN are set.

    - STOCK_QUOTE_TIMEOUT / STOCK_HISTORY_TIMEOUT → per-request deadlines (s)
    - STOCK_CHART_DISABLED=1 → brokerage only
    """
    quote_timeout = _env_float("STOCK_QUOTE_TIMEOUT", QUOTE_TIMEOUT)
    history_timeout = _env_float("STOCK_HISTORY_TIMEOUT", HISTORY_TIMEOUT)

    quote_providers: list[QuoteProvider] = []
    history_providers: list[HistoryProvider] = []

    if _env_flag("STOCK_CHART_DISABLED"):
        logger.info("Chart API providers disabled")
    else:
        quote_providers += [
            LiveApiQuoteProvider(timeout=quote_timeout),
            MirrorApiQuoteProvider(timeout=quote_timeout),
        ]
        history_providers += [
            LiveApiHistoryProvider(timeout=history_timeout),
            MirrorApiHistoryProvider(timeout=history_timeout),
        ]

    session = broker_session or create_broker_session()
    if session is not None:
        quote_providers.append(BrokerQuoteProvider(session))
        history_providers.append(BrokerHistoryProvider(session, timeout=history_timeout))

    if not quote_providers:
        logger.warning("No live providers configured; every query will return demo data")

    logger.info(
        "Stock data providers: quotes=%s history=%s",
        [p.name for p in quote_providers],
        [p.name for p in history_providers],
    )
    return StockDataService(
        quote_providers=quote_providers,
        history_providers=history_providers,
        quote_cache=TTLCache(QUOTE_TTL_SECONDS),
        ath_cache=TTLCache(ATH_TTL_SECONDS),
    )

"""Synthetic quotes for when every live source is down."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import numpy as np

from .market_clock import market_state
from .models import AllTimeHigh, Quote, StockResult, round_price, to_utc_iso

logger = logging.getLogger(__name__)

# Base prices by symbol family, checked in order as substrings of the symbol.
# Order matters: "HDFCBANK" matches BANK before HDFC.
DEMO_BASE_PRICES: tuple[tuple[str, float], ...] = (
    ("NSEI", 25000.0),
    ("BSESN", 82000.0),
    ("BANK", 52000.0),
    ("RELIANCE", 2800.0),
    ("TCS", 4200.0),
    ("HDFC", 1800.0),
)
DEFAULT_BASE_PRICE = 1000.0

JITTER = 0.01  # +/-1% around the base price
DAY_RANGE = 0.01  # day high/low at +/-1% of price
ATH_PREMIUM = 1.18
ATH_MAX_MONTHS_BACK = 24
MAX_VOLUME = 10_000_000


def base_price(symbol: str) -> float:
    symbol = symbol.upper()
    for family, price in DEMO_BASE_PRICES:
        if family in symbol:
            return price
    return DEFAULT_BASE_PRICE


def _months_back(today: date, months: int) -> date:
    """Same day-of-month `months` earlier, clamped to the month's last day."""
    year, month = divmod(today.year * 12 + today.month - 1 - months, 12)
    month += 1
    for day in range(today.day, 27, -1):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, min(today.day, 28))


class DemoDataGenerator:
    """Fabricates a plausible, clearly flagged StockResult.

    Never touches the network or the caches, and never raises. Pass a seeded
    numpy Generator for reproducible output.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()

    def generate(self, symbol: str, now_utc: datetime | None = None) -> StockResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        base = base_price(symbol)

        price = round_price(base * (1 + self._rng.uniform(-JITTER, JITTER)))
        quote = Quote.build(
            symbol=symbol,
            price=price,
            previous_close=base,
            day_high=price * (1 + DAY_RANGE),
            day_low=price * (1 - DAY_RANGE),
            volume=int(self._rng.integers(0, MAX_VOLUME)),
            market_state=market_state(now_utc),
            currency="INR",
            timestamp=to_utc_iso(now_utc),
        )

        months = int(self._rng.integers(0, ATH_MAX_MONTHS_BACK))
        ath = AllTimeHigh(
            price=round_price(price * ATH_PREMIUM),
            date=_months_back(now_utc.date(), months),
        )
        logger.debug("Demo data for %s: %.2f (ATH %.2f)", symbol, quote.price, ath.price)
        return StockResult.demo(quote, ath)

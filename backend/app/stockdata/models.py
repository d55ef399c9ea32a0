"""Data models for stock quotes and all-time highs."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

_CENT = Decimal("0.01")


def round_price(value: float) -> float:
    """Round half-up to 2 decimals, e.g. 12.345 -> 12.35.

    Float noise is collapsed first so 112.345 - 100 also lands on 12.35.
    """
    return float(Decimal(str(round(float(value), 10))).quantize(_CENT, rounding=ROUND_HALF_UP))


def optional_float(value: object) -> float | None:
    """None stays None; anything else must be a finite number.

    Raises TypeError or ValueError for non-numeric upstream values such as "N/A".
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"expected a number, got {value!r}")
    number = float(value)  # type: ignore[arg-type]
    if not math.isfinite(number):
        raise ValueError(f"non-finite number {value!r}")
    return number


def to_utc_iso(moment: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a Z suffix. Naive means UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return to_utc_iso(datetime.now(timezone.utc))


class MarketState(str, Enum):
    """Session label attached to every quote."""

    REGULAR = "REGULAR"
    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_upstream(cls, label: str | None) -> MarketState:
        """Normalize an upstream label. Pre/post sessions count as closed."""
        if not label:
            return cls.UNKNOWN
        label = label.upper()
        if label == "REGULAR":
            return cls.REGULAR
        if label in {"CLOSED", "PRE", "PREPRE", "POST", "POSTPOST"}:
            return cls.CLOSED
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class Instrument:
    """A symbol plus the brokerage token needed to query it (None if unknown)."""

    symbol: str
    token: int | None = None
    label: str | None = None
    kind: str | None = None  # "index" or "stock"

    @property
    def has_token(self) -> bool:
        return self.token is not None


@dataclass(frozen=True, slots=True)
class PricePoint:
    """One daily bar of a historical series."""

    date: date
    close: float | None
    volume: float | None


@dataclass(frozen=True, slots=True)
class Quote:
    """Immutable snapshot of an instrument's current trading statistics.

    Use Quote.build() so rounding and derived fields are consistent.
    """

    symbol: str
    price: float
    previous_close: float
    change: float
    change_percent: float
    day_high: float
    day_low: float
    volume: int
    market_state: MarketState
    currency: str = "INR"
    timestamp: str = field(default_factory=utc_now_iso)

    @classmethod
    def build(
        cls,
        symbol: str,
        price: float,
        previous_close: float,
        day_high: float | None = None,
        day_low: float | None = None,
        volume: float | None = None,
        market_state: MarketState = MarketState.UNKNOWN,
        currency: str | None = None,
        timestamp: str | None = None,
    ) -> Quote:
        price = round_price(price)
        previous_close = round_price(previous_close)
        if previous_close == 0:
            change_percent = 0.0
        else:
            change_percent = round_price((price - previous_close) / previous_close * 100)
        return cls(
            symbol=symbol,
            price=price,
            previous_close=previous_close,
            change=round_price(price - previous_close),
            change_percent=change_percent,
            day_high=round_price(day_high if day_high else price),
            day_low=round_price(day_low if day_low else price),
            volume=int(volume or 0),
            market_state=market_state,
            currency=currency or "INR",
            timestamp=timestamp or utc_now_iso(),
        )

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "previousClose": self.previous_close,
            "change": self.change,
            "changePercent": self.change_percent,
            "dayHigh": self.day_high,
            "dayLow": self.day_low,
            "volume": self.volume,
            "marketState": self.market_state.value,
            "currency": self.currency,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class AllTimeHigh:
    """Highest qualifying close and the day it happened."""

    price: float
    date: date

    @property
    def date_iso(self) -> str:
        return self.date.isoformat()

    @property
    def date_formatted(self) -> str:
        """Long Indian-English form, e.g. '15 March 2024'."""
        return f"{self.date.day} {self.date.strftime('%B %Y')}"

    def to_dict(self) -> dict:
        return {
            "athPrice": self.price,
            "athDate": self.date_iso,
            "athDateFormatted": self.date_formatted,
        }


@dataclass(frozen=True, slots=True)
class StockResult:
    """What a symbol query returns: a quote, an optional ATH and provenance flags.

    Exactly one of is_live / is_demo is set when a quote is present. error is
    set only when no quote could be produced at all.
    """

    quote: Quote | None
    ath: AllTimeHigh | None = None
    is_live: bool = False
    is_demo: bool = False
    error: bool = False
    message: str | None = None

    @classmethod
    def live(cls, quote: Quote, ath: AllTimeHigh | None = None) -> StockResult:
        return cls(quote=quote, ath=ath, is_live=True)

    @classmethod
    def demo(cls, quote: Quote, ath: AllTimeHigh | None = None) -> StockResult:
        return cls(quote=quote, ath=ath, is_demo=True)

    @classmethod
    def failed(cls, message: str) -> StockResult:
        return cls(quote=None, error=True, message=message)

    @property
    def correction_percent(self) -> float | None:
        """Distance from the ATH as a percentage of the ATH (negative = below)."""
        if self.quote is None or self.ath is None:
            return None
        from .ath import correction_from_ath

        return correction_from_ath(self.quote.price, self.ath.price)

    @property
    def points_from_ath(self) -> float | None:
        if self.quote is None or self.ath is None:
            return None
        return round_price(abs(self.quote.price - self.ath.price))

    @property
    def is_below_ath(self) -> bool | None:
        correction = self.correction_percent
        return None if correction is None else correction < 0

    def to_dict(self) -> dict:
        """Flatten into the JSON payload consumed by the price card."""
        data: dict = self.quote.to_dict() if self.quote else {}
        if self.ath:
            data.update(self.ath.to_dict())
            data["correctionPercent"] = self.correction_percent
            data["pointsFromAth"] = self.points_from_ath
        data["isLive"] = self.is_live
        data["isDemo"] = self.is_demo
        data["error"] = self.error
        if self.message:
            data["message"] = self.message
        return data

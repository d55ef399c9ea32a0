"""NSE session hours."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .models import MarketState

IST = timezone(timedelta(hours=5, minutes=30))

SESSION_OPEN_MINUTE = 9 * 60 + 15  # 09:15 IST
SESSION_CLOSE_MINUTE = 15 * 60 + 30  # 15:30 IST

OPEN_REFRESH_MILLIS = 30_000
CLOSED_REFRESH_MILLIS = 300_000


def _to_ist(now_utc: datetime | None) -> datetime:
    if now_utc is None:
        now_utc = datetime.now(timezone.utc)
    elif now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    return now_utc.astimezone(IST)


def is_market_open(now_utc: datetime | None = None) -> bool:
    """True on weekdays between 09:15 and 15:30 IST, both ends inclusive.

    Naive datetimes are taken to be UTC. Exchange holidays are not modelled.
    """
    local = _to_ist(now_utc)
    if local.weekday() >= 5:
        return False
    minute_of_day = local.hour * 60 + local.minute
    return SESSION_OPEN_MINUTE <= minute_of_day <= SESSION_CLOSE_MINUTE


def refresh_interval_millis(now_utc: datetime | None = None) -> int:
    """Polling cadence recommended to clients: 30s in session, 5min otherwise."""
    return OPEN_REFRESH_MILLIS if is_market_open(now_utc) else CLOSED_REFRESH_MILLIS


def market_state(now_utc: datetime | None = None) -> MarketState:
    return MarketState.REGULAR if is_market_open(now_utc) else MarketState.CLOSED

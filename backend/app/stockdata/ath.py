"""All-time-high derivation from a daily close series."""

from __future__ import annotations

from collections.abc import Iterable

from .models import AllTimeHigh, PricePoint, round_price


def compute_ath(series: Iterable[PricePoint]) -> AllTimeHigh | None:
    """Highest close among bars with a close and strictly positive volume.

    Bars with zero volume are ignored even if their close is higher, since
    upstreams pad non-trading days with carried-forward closes. Only a strict
    improvement replaces the record, so the earliest of equal highs wins.
    Returns None if no bar qualifies.
    """
    best: PricePoint | None = None
    for point in series:
        if point.close is None or not point.volume or point.volume <= 0:
            continue
        if point.close <= 0:
            continue
        if best is None or point.close > best.close:
            best = point

    if best is None:
        return None
    return AllTimeHigh(price=round_price(best.close), date=best.date)


def correction_from_ath(price: float, ath_price: float) -> float:
    """(price - ath) / ath as a percentage. Negative means below the high."""
    if ath_price <= 0:
        raise ValueError("ath_price must be positive")
    return round_price((price - ath_price) / ath_price * 100)

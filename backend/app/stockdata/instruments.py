"""Static instrument table and symbol lookup."""

from __future__ import annotations

from .models import Instrument

# Brokerage instrument tokens, keyed by bare exchange symbol
INSTRUMENT_TOKENS: dict[str, int] = {
    "NSEI": 256265,
    "BSESN": 265,
    "NSEBANK": 260105,
    "CNXIT": 260105,  # Shares the bank index token upstream; unverified
    "RELIANCE": 738561,
    "TCS": 2953217,
    "HDFCBANK": 341249,
    "INFY": 408065,
}

# Symbols offered to the UI, in chart-API spelling: (symbol, label, kind)
SUPPORTED_SYMBOLS: tuple[tuple[str, str, str], ...] = (
    ("^NSEI", "NIFTY 50", "index"),
    ("^BSESN", "SENSEX", "index"),
    ("^NSEBANK", "NIFTY BANK", "index"),
    ("^CNXIT", "NIFTY IT", "index"),
    ("RELIANCE.NS", "Reliance Industries", "stock"),
    ("TCS.NS", "Tata Consultancy Services", "stock"),
    ("HDFCBANK.NS", "HDFC Bank", "stock"),
    ("INFY.NS", "Infosys", "stock"),
)

_EXCHANGE_SUFFIXES = (".NS", ".BO")


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def bare_symbol(symbol: str) -> str:
    """Strip the index caret and exchange suffix: '^NSEI' -> 'NSEI', 'TCS.NS' -> 'TCS'."""
    bare = normalize_symbol(symbol).lstrip("^")
    for suffix in _EXCHANGE_SUFFIXES:
        if bare.endswith(suffix):
            return bare[: -len(suffix)]
    return bare


class InstrumentRegistry:
    """Maps a human symbol to the identifiers upstream providers need.

    Lookups never fail: an unknown symbol comes back with token=None, which
    means "no brokerage data available" to the broker providers.
    """

    def __init__(
        self,
        tokens: dict[str, int] | None = None,
        supported: tuple[tuple[str, str, str], ...] = SUPPORTED_SYMBOLS,
    ) -> None:
        self._tokens = dict(INSTRUMENT_TOKENS if tokens is None else tokens)
        self._meta = {normalize_symbol(sym): (label, kind) for sym, label, kind in supported}
        self._supported = tuple(normalize_symbol(sym) for sym, _, _ in supported)

    def lookup(self, symbol: str) -> Instrument:
        symbol = normalize_symbol(symbol)
        label, kind = self._meta.get(symbol, (None, None))
        return Instrument(
            symbol=symbol,
            token=self._tokens.get(bare_symbol(symbol)),
            label=label,
            kind=kind,
        )

    def supported(self) -> list[Instrument]:
        """Instruments offered to the symbol selector, in display order."""
        return [self.lookup(symbol) for symbol in self._supported]

    def __contains__(self, symbol: str) -> bool:
        return bare_symbol(symbol) in self._tokens

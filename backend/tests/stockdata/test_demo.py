"""Tests for DemoDataGenerator."""

from datetime import date, datetime, timedelta, timezone

import numpy as np
import pytest

from app.stockdata.demo import DemoDataGenerator, _months_back, base_price
from app.stockdata.models import MarketState

from .conftest import WEDNESDAY_SESSION_UTC

SATURDAY_UTC = datetime(2024, 1, 6, 6, 0, tzinfo=timezone.utc)


class TestBasePrice:
    @pytest.mark.parametrize(
        "symbol,expected",
        [
            ("^NSEI", 25000.0),
            ("^BSESN", 82000.0),
            ("^NSEBANK", 52000.0),
            ("RELIANCE.NS", 2800.0),
            ("TCS.NS", 4200.0),
            ("HDFCBANK.NS", 52000.0),  # BANK family is checked before HDFC
            ("HDFC.NS", 1800.0),
            ("UNKNOWN", 1000.0),
        ],
    )
    def test_families(self, symbol, expected):
        assert base_price(symbol) == expected


class TestMonthsBack:
    def test_simple(self):
        assert _months_back(date(2024, 5, 15), 3) == date(2024, 2, 15)

    def test_crosses_year(self):
        assert _months_back(date(2024, 1, 10), 2) == date(2023, 11, 10)

    def test_clamps_to_month_end(self):
        assert _months_back(date(2024, 3, 31), 1) == date(2024, 2, 29)

    def test_zero_months(self):
        assert _months_back(date(2024, 3, 31), 0) == date(2024, 3, 31)


class TestDemoDataGenerator:
    """Unit tests for synthetic results."""

    def test_flags(self):
        result = DemoDataGenerator().generate("^NSEI", WEDNESDAY_SESSION_UTC)
        assert result.is_demo is True
        assert result.is_live is False
        assert result.error is False

    @pytest.mark.parametrize("seed", range(10))
    def test_price_within_one_percent_of_base(self, seed):
        gen = DemoDataGenerator(rng=np.random.default_rng(seed))
        quote = gen.generate("^NSEI", WEDNESDAY_SESSION_UTC).quote
        assert 25000 * 0.99 <= quote.price <= 25000 * 1.01
        assert quote.previous_close == 25000.0

    def test_ath_consistent_with_price(self):
        result = DemoDataGenerator(rng=np.random.default_rng(7)).generate("TCS.NS", WEDNESDAY_SESSION_UTC)
        assert result.ath.price == pytest.approx(result.quote.price * 1.18, abs=0.01)

    @pytest.mark.parametrize("seed", range(10))
    def test_ath_date_within_24_months(self, seed):
        gen = DemoDataGenerator(rng=np.random.default_rng(seed))
        ath = gen.generate("^NSEI", WEDNESDAY_SESSION_UTC).ath
        assert date(2022, 2, 3) <= ath.date <= date(2024, 1, 3)

    def test_day_range_around_price(self):
        quote = DemoDataGenerator(rng=np.random.default_rng(1)).generate("X", WEDNESDAY_SESSION_UTC).quote
        assert quote.day_high == pytest.approx(quote.price * 1.01, abs=0.01)
        assert quote.day_low == pytest.approx(quote.price * 0.99, abs=0.01)

    def test_change_consistent(self):
        quote = DemoDataGenerator(rng=np.random.default_rng(3)).generate("^BSESN", WEDNESDAY_SESSION_UTC).quote
        assert quote.change == pytest.approx(quote.price - quote.previous_close, abs=0.011)
        assert quote.change_percent == pytest.approx(quote.change / quote.previous_close * 100, abs=0.01)

    def test_volume_bounds(self):
        quote = DemoDataGenerator(rng=np.random.default_rng(2)).generate("X", WEDNESDAY_SESSION_UTC).quote
        assert 0 <= quote.volume < 10_000_000

    def test_market_state_from_clock(self):
        gen = DemoDataGenerator()
        assert gen.generate("X", WEDNESDAY_SESSION_UTC).quote.market_state is MarketState.REGULAR
        assert gen.generate("X", SATURDAY_UTC).quote.market_state is MarketState.CLOSED

    def test_seeded_output_is_reproducible(self):
        a = DemoDataGenerator(rng=np.random.default_rng(99)).generate("^NSEI", WEDNESDAY_SESSION_UTC)
        b = DemoDataGenerator(rng=np.random.default_rng(99)).generate("^NSEI", WEDNESDAY_SESSION_UTC)
        assert a == b

    def test_currency_and_symbol(self):
        quote = DemoDataGenerator().generate("INFY.NS", WEDNESDAY_SESSION_UTC).quote
        assert quote.symbol == "INFY.NS"
        assert quote.currency == "INR"

    def test_defaults_to_current_time(self):
        result = DemoDataGenerator().generate("^NSEI")
        assert result.quote is not None
        assert result.ath is not None

    def test_timestamp_is_utc_with_z_suffix(self):
        quote = DemoDataGenerator().generate("X", WEDNESDAY_SESSION_UTC).quote
        assert quote.timestamp == "2024-01-03T04:30:00.000Z"

    def test_timestamp_from_non_utc_clock(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        quote = DemoDataGenerator().generate("X", datetime(2024, 1, 3, 10, 0, tzinfo=ist)).quote
        assert quote.timestamp == "2024-01-03T04:30:00.000Z"

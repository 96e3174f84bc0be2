"""Tests for SyntheticQuoteGenerator."""

import pytest

from stockwatch.market.seed_prices import ANCHOR_BAND, SEED_PRICES
from stockwatch.market.synthetic import SyntheticQuoteGenerator


class TestSyntheticQuoteGenerator:
    """Unit tests for the synthetic placeholder tier."""

    def test_quote_is_marked_synthetic(self, clock):
        gen = SyntheticQuoteGenerator(seed=1, clock=clock)
        quote = gen.quote("AAPL")
        assert quote.synthetic is True
        assert quote.symbol == "AAPL"
        assert quote.timestamp == clock.now

    def test_anchored_symbol_starts_at_seed(self, clock):
        """Test that known symbols start from their anchor price."""
        gen = SyntheticQuoteGenerator(seed=1, clock=clock)
        assert gen.quote("MSFT").price == SEED_PRICES["MSFT"]

    def test_unknown_symbol_within_default_bounds(self):
        """Test that unknown symbols draw within [floor, ceiling]."""
        gen = SyntheticQuoteGenerator(seed=3)
        for i in range(200):
            price = gen.quote(f"ZZ{i}").price
            assert 50.0 <= price <= 550.0

    def test_prices_stay_bounded_over_many_steps(self):
        """Placeholders walk but never leave their band, and stay positive."""
        gen = SyntheticQuoteGenerator(seed=11)
        lo, hi = gen.bounds("AAPL")
        for _ in range(5_000):
            price = gen.quote("AAPL").price
            assert price > 0
            assert lo - 0.01 <= price <= hi + 0.01

    def test_anchor_band(self):
        gen = SyntheticQuoteGenerator()
        lo, hi = gen.bounds("AAPL")
        assert lo == pytest.approx(SEED_PRICES["AAPL"] * (1 - ANCHOR_BAND))
        assert hi == pytest.approx(SEED_PRICES["AAPL"] * (1 + ANCHOR_BAND))

    def test_prices_change_over_time(self):
        """After many placeholders the price should have moved off the seed."""
        gen = SyntheticQuoteGenerator(seed=5)
        first = gen.quote("AAPL").price
        prices = {gen.quote("AAPL").price for _ in range(100)}
        assert prices != {first}

    def test_seeded_generators_agree(self):
        """Test that the same seed gives the same sequence."""
        a = SyntheticQuoteGenerator(seed=42)
        b = SyntheticQuoteGenerator(seed=42)
        assert [a.quote("ZZZZ").price for _ in range(10)] == [b.quote("ZZZZ").price for _ in range(10)]

    def test_prices_rounded_to_two_decimals(self):
        gen = SyntheticQuoteGenerator(seed=9)
        for _ in range(20):
            price = gen.quote("ZZZZ").price
            assert round(price, 2) == price

    def test_invalid_bounds_rejected(self):
        with pytest.raises(ValueError):
            SyntheticQuoteGenerator(floor=100.0, ceiling=50.0)
        with pytest.raises(ValueError):
            SyntheticQuoteGenerator(floor=0.0, ceiling=50.0)

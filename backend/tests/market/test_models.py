"""Tests for Quote and message envelopes."""

import json
import math

import pytest

from stockwatch.market.messages import (
    MessageType,
    encode,
    notification_message,
    ticker_message,
    welcome_message,
)
from stockwatch.market.models import Quote


class TestQuote:
    """Unit tests for the Quote model."""

    def test_quote_creation(self):
        """Test basic Quote creation."""
        quote = Quote(symbol="RELIANCE.BSE", price=2901.5, timestamp=1234567890000)
        assert quote.symbol == "RELIANCE.BSE"
        assert quote.price == 2901.5
        assert quote.timestamp == 1234567890000
        assert quote.open is None
        assert quote.volume is None
        assert quote.synthetic is False

    @pytest.mark.parametrize("price", [0, -1.0, math.nan, math.inf])
    def test_invalid_price_rejected(self, price):
        """Test that non-positive or non-finite prices never make a Quote."""
        with pytest.raises(ValueError):
            Quote(symbol="AAPL", price=price, timestamp=1)

    def test_non_numeric_price_rejected(self):
        with pytest.raises(ValueError):
            Quote(symbol="AAPL", price="190.5", timestamp=1)  # type: ignore[arg-type]

    def test_to_payload_omits_absent_fields(self):
        """Test that absent optional fields are left out, not zeroed."""
        quote = Quote(symbol="AAPL", price=190.5, timestamp=1000)
        assert quote.to_payload() == {"symbol": "AAPL", "price": 190.5, "ts": 1000}

    def test_to_payload_keeps_zero_volume(self):
        """Test that a real zero is distinct from absence."""
        quote = Quote(symbol="AAPL", price=190.5, timestamp=1000, volume=0.0)
        assert quote.to_payload()["volume"] == 0.0

    def test_to_payload_full(self):
        quote = Quote(
            symbol="AAPL",
            price=190.5,
            timestamp=1000,
            open=189.0,
            high=191.0,
            low=188.5,
            volume=52_000_000.0,
        )
        assert quote.to_payload() == {
            "symbol": "AAPL",
            "price": 190.5,
            "open": 189.0,
            "high": 191.0,
            "low": 188.5,
            "volume": 52_000_000.0,
            "ts": 1000,
        }

    def test_synthetic_flag_in_payload(self):
        quote = Quote(symbol="MSFT", price=300.0, timestamp=1000, synthetic=True)
        assert quote.to_payload()["synthetic"] is True

    def test_from_payload(self):
        """Test parsing the wire form back into a Quote."""
        quote = Quote.from_payload({"symbol": "AAPL", "price": 190, "high": "191.5", "ts": 1000})
        assert quote.price == 190.0
        assert quote.high == 191.5
        assert quote.low is None
        assert quote.timestamp == 1000

    def test_from_payload_rejects_bad_price(self):
        with pytest.raises(ValueError):
            Quote.from_payload({"symbol": "AAPL", "price": -5, "ts": 1000})

    def test_immutability(self):
        """Test that Quote is immutable."""
        quote = Quote(symbol="AAPL", price=190.50, timestamp=1)
        with pytest.raises(AttributeError):
            quote.price = 200.00  # Should raise error


class TestMessages:
    """Tests for the tagged push-channel envelopes."""

    def test_welcome(self):
        assert welcome_message(ts=42) == {"type": "welcome", "ts": 42}

    def test_welcome_defaults_to_now(self):
        assert welcome_message()["ts"] > 1_600_000_000_000

    def test_ticker(self):
        quote = Quote(symbol="AAPL", price=190.5, timestamp=1000)
        assert ticker_message(quote) == {
            "type": "ticker",
            "payload": {"symbol": "AAPL", "price": 190.5, "ts": 1000},
        }

    def test_notification(self):
        message = notification_message(title="Halt", message="Trading paused", ts=7)
        assert message == {
            "type": "notification",
            "payload": {"title": "Halt", "message": "Trading paused", "ts": 7},
        }

    def test_notification_optional_fields(self):
        assert notification_message(ts=7)["payload"] == {"ts": 7}

    def test_encode_is_json(self):
        frame = encode(welcome_message(ts=1))
        assert json.loads(frame) == {"type": MessageType.WELCOME.value, "ts": 1}

    def test_encode_passes_strings_through(self):
        assert encode('{"type":"welcome"}') == '{"type":"welcome"}'

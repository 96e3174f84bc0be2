"""Reference prices and walk parameters for synthetic placeholder quotes."""

# Default symbol universe: US large caps plus exchange-qualified Indian listings
DEFAULT_SYMBOLS: list[str] = [
    "AAPL",
    "MSFT",
    "GOOGL",
    "AMZN",
    "META",
    "RELIANCE.BSE",
    "TCS.BSE",
    "INFY.BSE",
]

# Rough anchor prices so placeholders land in a believable range
SEED_PRICES: dict[str, float] = {
    "AAPL": 190.00,
    "MSFT": 420.00,
    "GOOGL": 175.00,
    "AMZN": 185.00,
    "META": 500.00,
    "RELIANCE.BSE": 2900.00,
    "TCS.BSE": 3900.00,
    "INFY.BSE": 1500.00,
}

# sigma: per-placeholder volatility of the log-price step
TICKER_PARAMS: dict[str, dict[str, float]] = {
    "AAPL": {"sigma": 0.01},
    "MSFT": {"sigma": 0.01},
    "GOOGL": {"sigma": 0.012},
    "AMZN": {"sigma": 0.014},
    "META": {"sigma": 0.015},
    "RELIANCE.BSE": {"sigma": 0.008},
    "TCS.BSE": {"sigma": 0.008},
    "INFY.BSE": {"sigma": 0.01},
}

DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.01}

# Bounds for symbols with no anchor price
SYNTHETIC_FLOOR = 50.0
SYNTHETIC_CEILING = 550.0

# Anchored walks stay within this fraction of the seed price
ANCHOR_BAND = 0.25

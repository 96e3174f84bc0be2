"""Stockwatch: real-time market data for the watchlist dashboard."""

__version__ = "0.1.0"

"""Paper-trading ledger for a Polymarket / Kalshi arbitrage bot."""

__version__ = "0.1.0"

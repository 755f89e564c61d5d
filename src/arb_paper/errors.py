"""Ledger exceptions.

Every declined action is a ``LedgerError``. Callers (CLI, strategy loops)
catch the base class and report the message; nothing here is fatal.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for recoverable ledger failures."""


class InsufficientBalanceError(LedgerError):
    """Raised when an order's USD notional exceeds available cash."""

    def __init__(self, available: float, requested: float) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient balance: ${available:.2f} available, ${requested:.2f} needed"
        )


class PositionNotFoundError(LedgerError):
    """Raised when closing a market that has no open position."""

    def __init__(self, market: str) -> None:
        self.market = market
        super().__init__(f"No position found for {market}")


class InvalidOrderError(LedgerError, ValueError):
    """Raised for non-finite or out-of-range sizes, prices and confidences."""


class TradeStateError(LedgerError):
    """Raised when a trade record is closed or cancelled twice."""

    def __init__(self, trade_id: str, status: str) -> None:
        self.trade_id = trade_id
        self.status = status
        super().__init__(f"Trade {trade_id} is {status}, expected Open")


class PersistenceError(LedgerError):
    """Raised when a snapshot cannot be written or parsed."""

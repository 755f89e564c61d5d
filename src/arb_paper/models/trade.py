"""Trade record model — one buy/sell lifecycle in the audit trail."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from arb_paper.accounting import calculate_trade_pnl, validate_exit_price
from arb_paper.errors import TradeStateError


class Side(str, Enum):
    BUY = "Buy"
    SELL = "Sell"

    def __str__(self) -> str:
        return self.value.upper()


class TradeStatus(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"
    CANCELLED = "Cancelled"


def _new_trade_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TradeRecord(BaseModel):
    """A paper trade.

    ``size`` is the USD notional at entry. ``exit_price`` and ``pnl`` are
    set together by :meth:`close` and never touched again; ``closed_at``
    records when, so statistics can follow realisation order.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    id: str = Field(default_factory=_new_trade_id)
    timestamp: datetime = Field(default_factory=_utcnow)
    market: str
    coin: str = ""
    timeframe: str = ""
    platform: str = ""
    side: Side = Side.BUY
    size: float
    entry_price: float
    exit_price: float | None = None
    pnl: float | None = None
    status: TradeStatus = TradeStatus.OPEN
    strategy: str = "manual"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    notes: str | None = None
    closed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status is TradeStatus.OPEN

    def is_profitable(self) -> bool:
        return self.pnl is not None and self.pnl > 0

    def close(self, exit_price: float) -> float:
        """Close the trade at *exit_price* and return its P&L."""
        if self.status is not TradeStatus.OPEN:
            raise TradeStateError(self.id, self.status.value)
        validate_exit_price(exit_price)
        pnl = calculate_trade_pnl(self.side, self.size, self.entry_price, exit_price)
        self.exit_price = exit_price
        self.pnl = pnl
        self.closed_at = _utcnow()
        self.status = TradeStatus.CLOSED
        return pnl

    def cancel(self, note: str | None = None) -> None:
        """Mark an open trade cancelled; no exit price or P&L is recorded."""
        if self.status is not TradeStatus.OPEN:
            raise TradeStateError(self.id, self.status.value)
        self.status = TradeStatus.CANCELLED
        if note:
            self.notes = note

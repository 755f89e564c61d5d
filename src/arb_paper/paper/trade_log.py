"""Trade log — append-only audit trail of paper trades."""

from __future__ import annotations

import structlog
from pydantic import TypeAdapter, ValidationError

from arb_paper.errors import PersistenceError
from arb_paper.models.trade import TradeRecord, TradeStatus
from arb_paper.storage.base import SnapshotStore

log = structlog.get_logger("trade_log")

_RECORDS = TypeAdapter(list[TradeRecord])


class TradeLog:
    """Chronological trade records, written through to ``store`` on every change.

    Records are never removed. A missing history starts empty; an
    unreadable one also starts empty but is logged, and the bad document
    stays in the store until the next write replaces it.
    """

    def __init__(self, store: SnapshotStore | None = None) -> None:
        self.store = store
        self._trades: list[TradeRecord] = self._load() if store is not None else []

    def _load(self) -> list[TradeRecord]:
        try:
            data = self.store.load()
        except PersistenceError as exc:
            log.warning("trade_history_unreadable", store=repr(self.store), error=str(exc))
            return []
        if data is None:
            return []
        try:
            trades = _RECORDS.validate_python(data)
        except ValidationError as exc:
            log.warning(
                "trade_history_invalid",
                store=repr(self.store),
                errors=exc.error_count(),
            )
            return []
        log.info("trade_history_loaded", trades=len(trades))
        return trades

    def save(self) -> None:
        if self.store is None:
            return
        self.store.save(_RECORDS.dump_python(self._trades, mode="json"))

    def __len__(self) -> int:
        return len(self._trades)

    # ── Mutation ──────────────────────────────────────────────

    def add_trade(self, trade: TradeRecord) -> None:
        if self._find(trade.id) is not None:
            raise ValueError(f"duplicate trade id {trade.id}")
        self._trades.append(trade)
        self.save()

    def _find(self, trade_id: str) -> TradeRecord | None:
        for trade in self._trades:
            if trade.id == trade_id:
                return trade
        return None

    def close_trade(self, trade_id: str, exit_price: float) -> bool:
        """Close the trade with *trade_id*; False if no such trade exists."""
        trade = self._find(trade_id)
        if trade is None:
            return False
        pnl = trade.close(exit_price)
        log.info("trade_closed", trade_id=trade_id, market=trade.market, exit_price=exit_price, pnl=pnl)
        self.save()
        return True

    def cancel_trade(self, trade_id: str, note: str | None = None) -> bool:
        """Cancel an open trade; False if no such trade exists."""
        trade = self._find(trade_id)
        if trade is None:
            return False
        trade.cancel(note)
        log.info("trade_cancelled", trade_id=trade_id, market=trade.market)
        self.save()
        return True

    # ── Queries ───────────────────────────────────────────────

    def get_all(self) -> list[TradeRecord]:
        return list(self._trades)

    def get_open(self) -> list[TradeRecord]:
        return [t for t in self._trades if t.status is TradeStatus.OPEN]

    def get_closed(self) -> list[TradeRecord]:
        return [t for t in self._trades if t.status is TradeStatus.CLOSED]

    def get_recent(self, n: int) -> list[TradeRecord]:
        """The last *n* trades, newest first."""
        if n <= 0:
            return []
        return self._trades[::-1][:n]

    def find_open(self, market: str) -> TradeRecord | None:
        """First open trade for *market*, oldest first."""
        for trade in self._trades:
            if trade.status is TradeStatus.OPEN and trade.market == market:
                return trade
        return None

    def total_pnl(self) -> float:
        return sum((t.pnl for t in self._trades if t.pnl is not None), 0.0)

    def win_rate(self) -> tuple[float, int, int]:
        """(rate, wins, closed) over closed trades; (0.0, 0, 0) when none."""
        closed = self.get_closed()
        if not closed:
            return 0.0, 0, 0
        wins = sum(1 for t in closed if t.is_profitable())
        return wins / len(closed), wins, len(closed)

    def best_trade(self) -> TradeRecord | None:
        priced = [t for t in self._trades if t.pnl is not None]
        if not priced:
            return None
        return max(priced, key=lambda t: t.pnl)

    def worst_trade(self) -> TradeRecord | None:
        priced = [t for t in self._trades if t.pnl is not None]
        if not priced:
            return None
        return min(priced, key=lambda t: t.pnl)

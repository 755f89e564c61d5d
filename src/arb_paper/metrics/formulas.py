"""Pure metric computation functions over closed paper trades."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from arb_paper.models.trade import TradeRecord, TradeStatus


@dataclass
class TradeStats:
    """Aggregated performance of the closed trades in a log."""

    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    total_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    expectancy: float = 0.0
    max_drawdown: float = 0.0
    by_strategy: dict[str, float] = field(default_factory=dict)


def win_rate(wins: int, total: int) -> float:
    """Win rate as a percentage 0-100."""
    if total <= 0:
        return 0.0
    return wins / total * 100


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """Gross profit / gross loss.  *gross_loss* should be a positive number."""
    if gross_loss <= 0:
        return 0.0
    return gross_profit / gross_loss


def expectancy(win_rate_pct: float, avg_win: float, avg_loss: float) -> float:
    """Expected value per trade: wr * avg_win - (1-wr) * |avg_loss|."""
    wr = win_rate_pct / 100.0
    return wr * avg_win - (1 - wr) * abs(avg_loss)


def max_drawdown(equity_series: Sequence[float]) -> float:
    """Maximum drawdown as a percentage 0-100."""
    if len(equity_series) < 2:
        return 0.0
    arr = np.array(equity_series, dtype=np.float64)
    peak = np.maximum.accumulate(arr)
    # Avoid division by zero where peak is 0
    safe_peak = np.where(peak == 0, 1.0, peak)
    drawdowns = (peak - arr) / safe_peak
    return float(np.max(drawdowns) * 100)


def compute_trade_stats(
    trades: Sequence[TradeRecord],
    initial_balance: float = 0.0,
) -> TradeStats:
    """Summarise closed trades in the order they were closed.

    The drawdown is taken over ``initial_balance`` plus cumulative realised
    P&L, one point per closed trade. Records without ``closed_at`` sort by
    their entry timestamp.
    """
    closed = sorted(
        (t for t in trades if t.status is TradeStatus.CLOSED and t.pnl is not None),
        key=lambda t: t.closed_at or t.timestamp,
    )
    if not closed:
        return TradeStats()

    pnls = [t.pnl for t in closed]
    winners = [p for p in pnls if p > 0]
    losers = [p for p in pnls if p <= 0]
    gross_profit = sum(winners)
    gross_loss = abs(sum(losers))

    wr = win_rate(len(winners), len(pnls))
    avg_win = gross_profit / len(winners) if winners else 0.0
    avg_loss = -gross_loss / len(losers) if losers else 0.0

    equity = np.concatenate(([initial_balance], initial_balance + np.cumsum(pnls)))

    by_strategy: dict[str, float] = {}
    for t in closed:
        by_strategy[t.strategy] = by_strategy.get(t.strategy, 0.0) + t.pnl

    return TradeStats(
        total_trades=len(pnls),
        wins=len(winners),
        losses=len(losers),
        total_pnl=float(sum(pnls)),
        avg_win=avg_win,
        avg_loss=avg_loss,
        win_rate=wr,
        profit_factor=profit_factor(gross_profit, gross_loss),
        expectancy=expectancy(wr, avg_win, avg_loss),
        max_drawdown=max_drawdown(equity.tolist()),
        by_strategy=by_strategy,
    )

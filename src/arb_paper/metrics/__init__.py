"""Trade-history performance metrics."""

from arb_paper.metrics.formulas import (
    TradeStats,
    compute_trade_stats,
    expectancy,
    max_drawdown,
    profit_factor,
    win_rate,
)

__all__ = [
    "TradeStats",
    "compute_trade_stats",
    "expectancy",
    "max_drawdown",
    "profit_factor",
    "win_rate",
]

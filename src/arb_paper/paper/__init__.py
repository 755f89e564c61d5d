"""Paper trading — portfolio, trade log and the engine that drives them."""

from arb_paper.paper.engine import PaperTradingEngine, PortfolioSummary, SellResult
from arb_paper.paper.portfolio import Portfolio
from arb_paper.paper.trade_log import TradeLog

__all__ = [
    "PaperTradingEngine",
    "Portfolio",
    "PortfolioSummary",
    "SellResult",
    "TradeLog",
]

"""Pydantic domain models."""

from arb_paper.models.copytrade import CopyTrade, TradeActivity, TraderPosition
from arb_paper.models.market import ArbOpportunity, MatchedMarket, Quote
from arb_paper.models.position import PortfolioSnapshot, Position
from arb_paper.models.trade import Side, TradeRecord, TradeStatus

__all__ = [
    "ArbOpportunity",
    "CopyTrade",
    "MatchedMarket",
    "PortfolioSnapshot",
    "Position",
    "Quote",
    "Side",
    "TradeActivity",
    "TradeRecord",
    "TradeStatus",
    "TraderPosition",
]

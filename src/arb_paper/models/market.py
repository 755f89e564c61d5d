"""Cross-venue market models — matched pairs, quotes, spread opportunities."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Venue = Literal["polymarket", "kalshi"]


class MatchedMarket(BaseModel):
    """The same binary question listed on both venues."""

    name: str
    polymarket_id: str
    kalshi_ticker: str
    coin: str = ""
    timeframe: str = ""

    def market_id(self, venue: Venue) -> str:
        return self.polymarket_id if venue == "polymarket" else self.kalshi_ticker


class Quote(BaseModel):
    """Best bid / ask for YES shares on one venue; either side may be missing."""

    bid: float | None = Field(default=None, ge=0.0, le=1.0)
    ask: float | None = Field(default=None, ge=0.0, le=1.0)


class ArbOpportunity(BaseModel):
    """Buy YES on one venue at its ask, sell on the other at its bid."""

    market: MatchedMarket
    buy_venue: Venue
    sell_venue: Venue
    buy_price: float
    sell_price: float
    spread: float

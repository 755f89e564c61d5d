"""Price sources that need no network — fixed quotes, optionally from YAML."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from arb_paper.models.market import MatchedMarket, Quote, Venue


class _QuotedMarket(MatchedMarket):
    polymarket: Quote = Field(default_factory=Quote)
    kalshi: Quote = Field(default_factory=Quote)


class _QuotesFile(BaseModel):
    markets: list[_QuotedMarket] = Field(default_factory=list)


class StaticPriceSource:
    """Serves fixed quotes keyed by ``(venue, market_id)``.

    An unknown key raises ``KeyError``, which the detector logs and skips.
    """

    def __init__(self, quotes: Mapping[tuple[str, str], Quote]) -> None:
        self.quotes = dict(quotes)

    def get_best_prices(self, venue: Venue, market_id: str) -> Quote:
        return self.quotes[(venue, market_id)]

    @classmethod
    def from_yaml(cls, path: str | Path) -> tuple[StaticPriceSource, list[MatchedMarket]]:
        """Read a quotes file; return the source and the market pairs it covers.

        Format::

            markets:
              - name: BTC up 15m
                polymarket_id: 0xabc
                kalshi_ticker: KXBTC-UP
                polymarket: {bid: 0.60, ask: 0.62}
                kalshi: {bid: 0.50, ask: 0.55}
        """
        with open(path) as f:
            parsed = _QuotesFile.model_validate(yaml.safe_load(f) or {})

        quotes: dict[tuple[str, str], Quote] = {}
        markets: list[MatchedMarket] = []
        for entry in parsed.markets:
            quotes[("polymarket", entry.polymarket_id)] = entry.polymarket
            quotes[("kalshi", entry.kalshi_ticker)] = entry.kalshi
            markets.append(MatchedMarket.model_validate(entry.model_dump(exclude={"polymarket", "kalshi"})))
        return cls(quotes), markets

"""Cross-venue spread detection between Polymarket and Kalshi quotes."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol

import structlog

from arb_paper.config.schema import ArbitrageConfig
from arb_paper.errors import LedgerError, PersistenceError
from arb_paper.models.market import ArbOpportunity, MatchedMarket, Quote, Venue

if TYPE_CHECKING:
    from arb_paper.paper.engine import PaperTradingEngine

log = structlog.get_logger("arb_detector")


class PriceSource(Protocol):
    """Anything that can quote a venue's best YES bid/ask for a market id."""

    def get_best_prices(self, venue: Venue, market_id: str) -> Quote: ...


def find_opportunities(
    matched: MatchedMarket,
    poly: Quote,
    kalshi: Quote,
    min_profit: float,
) -> list[ArbOpportunity]:
    """Compare quotes in both directions and return spreads above *min_profit*.

    Buy Kalshi, sell Polymarket:  poly.bid  - kalshi.ask > min_profit
    Buy Polymarket, sell Kalshi:  kalshi.bid - poly.ask  > min_profit

    A direction with a missing bid or ask is skipped.
    """
    found: list[ArbOpportunity] = []

    if kalshi.ask is not None and poly.bid is not None:
        spread = poly.bid - kalshi.ask
        if spread > min_profit:
            found.append(ArbOpportunity(
                market=matched,
                buy_venue="kalshi",
                sell_venue="polymarket",
                buy_price=kalshi.ask,
                sell_price=poly.bid,
                spread=spread,
            ))

    if poly.ask is not None and kalshi.bid is not None:
        spread = kalshi.bid - poly.ask
        if spread > min_profit:
            found.append(ArbOpportunity(
                market=matched,
                buy_venue="polymarket",
                sell_venue="kalshi",
                buy_price=poly.ask,
                sell_price=kalshi.bid,
                spread=spread,
            ))

    return found


def opportunity_confidence(spread: float, min_profit: float) -> float:
    """Scale spread into [0, 1]; four times the threshold counts as certain."""
    if min_profit <= 0:
        return 1.0 if spread > 0 else 0.0
    return max(0.0, min(spread / (min_profit * 4), 1.0))


class ArbitrageDetector:
    """Runs detection passes over a fixed list of matched market pairs."""

    def __init__(
        self,
        source: PriceSource,
        markets: Sequence[MatchedMarket],
        min_profit: float = 0.02,
        max_position_size: float = 100.0,
        interval_s: float = 10.0,
    ) -> None:
        self.source = source
        self.markets = list(markets)
        self.min_profit = min_profit
        self.max_position_size = max_position_size
        self.interval_s = interval_s

    @classmethod
    def from_config(
        cls,
        source: PriceSource,
        markets: Sequence[MatchedMarket],
        config: ArbitrageConfig,
    ) -> ArbitrageDetector:
        return cls(
            source,
            markets,
            min_profit=config.min_profit_threshold,
            max_position_size=config.max_position_size,
            interval_s=config.scan_interval_s,
        )

    def check(self, matched: MatchedMarket) -> list[ArbOpportunity]:
        """Quote both venues for one pair and return its opportunities."""
        log.debug("checking_opportunity", market=matched.name)
        poly = self.source.get_best_prices("polymarket", matched.polymarket_id)
        kalshi = self.source.get_best_prices("kalshi", matched.kalshi_ticker)
        found = find_opportunities(matched, poly, kalshi, self.min_profit)
        for opp in found:
            log.info(
                "arb_opportunity",
                market=matched.name,
                buy_venue=opp.buy_venue,
                buy_price=opp.buy_price,
                sell_venue=opp.sell_venue,
                sell_price=opp.sell_price,
                spread_pct=round(opp.spread * 100, 2),
            )
        return found

    def scan(self) -> list[ArbOpportunity]:
        """One pass over every pair; a pair whose quotes fail is skipped."""
        found: list[ArbOpportunity] = []
        for matched in self.markets:
            try:
                found.extend(self.check(matched))
            except Exception:
                log.exception("quote_fetch_failed", market=matched.name)
        return found

    def paper_trade(
        self,
        engine: PaperTradingEngine,
        opportunity: ArbOpportunity,
        size_usd: float | None = None,
    ) -> str:
        """Book the buy leg of *opportunity* in the paper ledger; return the trade id.

        *size_usd* defaults to, and is capped at, ``max_position_size``.
        """
        if size_usd is None:
            size_usd = self.max_position_size
        size_usd = min(size_usd, self.max_position_size)
        matched = opportunity.market
        venue = opportunity.buy_venue
        return engine.buy(
            matched.market_id(venue),
            matched.coin,
            matched.timeframe,
            venue,
            size_usd,
            opportunity.buy_price,
            strategy="arbitrage",
            confidence=opportunity_confidence(opportunity.spread, self.min_profit),
            notes=f"{matched.name}: sell {opportunity.sell_venue} @ {opportunity.sell_price:.3f}",
        )

    def run_once(self, engine: PaperTradingEngine | None = None) -> list[ArbOpportunity]:
        """Scan all pairs; with *engine*, book the buy leg of each opportunity.

        A declined booking (e.g. insufficient balance) is logged and the
        rest still go through. Persistence failures propagate.
        """
        found = self.scan()
        if engine is None:
            return found
        for opp in found:
            try:
                self.paper_trade(engine, opp)
            except PersistenceError:
                raise
            except LedgerError as exc:
                log.warning("arb_trade_declined", market=opp.market.name, reason=str(exc))
        return found

    def run(
        self,
        engine: PaperTradingEngine | None = None,
        max_passes: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """Poll every ``interval_s`` seconds until *max_passes* (forever if None)."""
        passes = 0
        log.info("arb_monitor_started", markets=len(self.markets), interval_s=self.interval_s)
        while max_passes is None or passes < max_passes:
            found = self.run_once(engine)
            passes += 1
            log.debug("arb_pass_complete", passes=passes, opportunities=len(found))
            if max_passes is not None and passes >= max_passes:
                break
            sleep(self.interval_s)
        return passes

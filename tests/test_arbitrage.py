"""Tests for cross-venue spread detection and paper execution."""

from __future__ import annotations

import pytest

from arb_paper.arbitrage import (
    ArbitrageDetector,
    StaticPriceSource,
    find_opportunities,
    opportunity_confidence,
)
from arb_paper.config.schema import ArbitrageConfig
from arb_paper.models import MatchedMarket, Quote
from arb_paper.paper.engine import PaperTradingEngine

BTC = MatchedMarket(
    name="BTC up 15m",
    polymarket_id="0xbtc-up",
    kalshi_ticker="KXBTC-UP",
    coin="BTC",
    timeframe="15m",
)
ETH = MatchedMarket(name="ETH up 1h", polymarket_id="0xeth-up", kalshi_ticker="KXETH-UP", coin="ETH")


class FakeSource:
    """Quotes keyed by (venue, market_id); a missing key raises."""

    def __init__(self, quotes: dict[tuple[str, str], Quote]) -> None:
        self.quotes = quotes
        self.calls: list[tuple[str, str]] = []

    def get_best_prices(self, venue, market_id):
        self.calls.append((venue, market_id))
        try:
            return self.quotes[(venue, market_id)]
        except KeyError:
            raise ConnectionError(f"no quote for {venue}:{market_id}") from None


class TestFindOpportunities:
    def test_buy_kalshi_sell_polymarket(self):
        found = find_opportunities(BTC, Quote(bid=0.60, ask=0.62), Quote(bid=0.50, ask=0.55), 0.02)
        assert len(found) == 1
        opp = found[0]
        assert (opp.buy_venue, opp.sell_venue) == ("kalshi", "polymarket")
        assert opp.buy_price == 0.55
        assert opp.sell_price == 0.60
        assert opp.spread == pytest.approx(0.05)

    def test_buy_polymarket_sell_kalshi(self):
        found = find_opportunities(BTC, Quote(bid=0.40, ask=0.45), Quote(bid=0.50, ask=0.52), 0.02)
        assert len(found) == 1
        assert found[0].buy_venue == "polymarket"
        assert found[0].spread == pytest.approx(0.05)

    def test_below_threshold(self):
        assert find_opportunities(BTC, Quote(bid=0.56, ask=0.58), Quote(bid=0.54, ask=0.55), 0.02) == []

    def test_missing_sides_skipped(self):
        assert find_opportunities(BTC, Quote(bid=None, ask=0.45), Quote(bid=0.60, ask=None), 0.02) != []
        assert find_opportunities(BTC, Quote(), Quote(bid=0.9, ask=0.1), 0.02) == []


class TestConfidence:
    def test_scaled(self):
        assert opportunity_confidence(0.04, 0.02) == pytest.approx(0.5)

    def test_clamped(self):
        assert opportunity_confidence(0.5, 0.02) == 1.0
        assert opportunity_confidence(-0.1, 0.02) == 0.0

    def test_zero_threshold(self):
        assert opportunity_confidence(0.01, 0.0) == 1.0


class TestDetector:
    def test_scan_skips_failing_pairs(self):
        source = FakeSource({
            ("polymarket", "0xbtc-up"): Quote(bid=0.60, ask=0.62),
            ("kalshi", "KXBTC-UP"): Quote(bid=0.50, ask=0.55),
        })
        detector = ArbitrageDetector(source, [ETH, BTC])
        found = detector.scan()
        assert [o.market.name for o in found] == ["BTC up 15m"]
        assert ("polymarket", "0xeth-up") in source.calls

    def test_from_config(self):
        cfg = ArbitrageConfig(min_profit_threshold=0.1, max_position_size=25.0)
        detector = ArbitrageDetector.from_config(FakeSource({}), [BTC], cfg)
        assert detector.min_profit == 0.1
        assert detector.max_position_size == 25.0

    def test_paper_trade_books_buy_leg(self, engine):
        detector = ArbitrageDetector(FakeSource({}), [BTC], min_profit=0.02, max_position_size=50.0)
        opp = find_opportunities(BTC, Quote(bid=0.60, ask=0.62), Quote(bid=0.50, ask=0.55), 0.02)[0]

        trade_id = detector.paper_trade(engine, opp, size_usd=500.0)

        trade = engine.trade_log.get_open()[0]
        assert trade.id == trade_id
        assert trade.market == "KXBTC-UP"
        assert trade.platform == "kalshi"
        assert trade.coin == "BTC"
        assert trade.timeframe == "15m"
        assert trade.size == 50.0
        assert trade.entry_price == 0.55
        assert trade.strategy == "arbitrage"
        assert trade.confidence == pytest.approx(0.625)
        assert "sell polymarket @ 0.600" in trade.notes
        assert engine.portfolio.cash_balance == pytest.approx(950.0)

    def test_paper_trade_default_size(self, engine):
        detector = ArbitrageDetector(FakeSource({}), [BTC], max_position_size=20.0)
        opp = find_opportunities(BTC, Quote(bid=0.40, ask=0.45), Quote(bid=0.50, ask=0.52), 0.02)[0]
        detector.paper_trade(engine, opp)
        assert engine.portfolio.positions["0xbtc-up"].size == pytest.approx(20.0 / 0.45)


QUOTES_YAML = """\
markets:
  - name: BTC up 15m
    polymarket_id: 0xbtc-up
    kalshi_ticker: KXBTC-UP
    coin: BTC
    timeframe: 15m
    polymarket: {bid: 0.60, ask: 0.62}
    kalshi: {bid: 0.50, ask: 0.55}
  - name: ETH up 1h
    polymarket_id: 0xeth-up
    kalshi_ticker: KXETH-UP
    polymarket: {bid: 0.50}
"""


def _spread_source():
    return FakeSource({
        ("polymarket", "0xbtc-up"): Quote(bid=0.60, ask=0.62),
        ("kalshi", "KXBTC-UP"): Quote(bid=0.50, ask=0.55),
    })


class TestStaticPriceSource:
    def test_from_yaml(self, tmp_path):
        path = tmp_path / "quotes.yaml"
        path.write_text(QUOTES_YAML)
        source, markets = StaticPriceSource.from_yaml(path)
        assert [m.name for m in markets] == ["BTC up 15m", "ETH up 1h"]
        assert markets[0].coin == "BTC"
        assert source.get_best_prices("kalshi", "KXBTC-UP") == Quote(bid=0.50, ask=0.55)
        assert source.get_best_prices("kalshi", "KXETH-UP") == Quote()

    def test_unknown_market_raises(self):
        with pytest.raises(KeyError):
            StaticPriceSource({}).get_best_prices("polymarket", "0x")


class TestRun:
    def test_run_once_without_engine_only_detects(self):
        found = ArbitrageDetector(_spread_source(), [BTC]).run_once()
        assert len(found) == 1

    def test_run_once_books_opportunities(self, engine):
        ArbitrageDetector(_spread_source(), [BTC], max_position_size=10.0).run_once(engine)
        assert [t.strategy for t in engine.trade_log.get_open()] == ["arbitrage"]

    def test_run_once_logs_declined_trades(self, portfolio_store, trades_store):
        poor = PaperTradingEngine.from_stores(portfolio_store, trades_store, initial_balance=5.0)
        found = ArbitrageDetector(_spread_source(), [BTC], max_position_size=10.0).run_once(poor)
        assert len(found) == 1
        assert poor.trade_log.get_all() == []

    def test_run_polls_until_max_passes(self):
        sleeps: list[float] = []
        source = _spread_source()
        detector = ArbitrageDetector(source, [BTC], interval_s=2.5)
        assert detector.run(max_passes=3, sleep=sleeps.append) == 3
        assert sleeps == [2.5, 2.5]
        assert len(source.calls) == 6

    def test_interval_from_config(self):
        cfg = ArbitrageConfig(scan_interval_s=30.0)
        assert ArbitrageDetector.from_config(FakeSource({}), [], cfg).interval_s == 30.0

"""Tests for Pydantic domain models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from arb_paper.errors import InvalidOrderError, TradeStateError
from arb_paper.models import (
    CopyTrade,
    MatchedMarket,
    PortfolioSnapshot,
    Position,
    Quote,
    Side,
    TradeActivity,
    TradeRecord,
    TradeStatus,
    TraderPosition,
)


def _position(**overrides):
    fields = dict(
        market="btc-up-15m",
        coin="BTC",
        platform="polymarket",
        size=250.0,
        avg_price=0.40,
        current_price=0.40,
    )
    fields.update(overrides)
    return Position(**fields)


def _trade(**overrides):
    fields = dict(market="M", coin="BTC", timeframe="15m", platform="polymarket", size=100.0, entry_price=0.40)
    fields.update(overrides)
    return TradeRecord(**fields)


class TestPosition:
    def test_new_position_has_zero_unrealized_pnl(self):
        assert _position().unrealized_pnl == 0.0

    def test_update_pnl_recomputes(self):
        pos = _position()
        pos.update_pnl(0.50)
        assert pos.current_price == 0.50
        assert pos.unrealized_pnl == pytest.approx(250.0 * 0.10)

    def test_unrealized_pnl_follows_size_changes(self):
        pos = _position(current_price=0.60)
        pos.size = 100.0
        assert pos.unrealized_pnl == pytest.approx(100.0 * 0.20)

    def test_values(self):
        pos = _position(current_price=0.60)
        assert pos.current_value() == pytest.approx(150.0)
        assert pos.initial_value() == pytest.approx(100.0)

    def test_serialises_unrealized_pnl(self):
        data = _position(current_price=0.50).model_dump(mode="json")
        assert data["unrealized_pnl"] == pytest.approx(25.0)
        assert set(data) == {
            "market", "coin", "platform", "size", "avg_price", "current_price", "unrealized_pnl",
        }

    def test_stored_unrealized_pnl_is_ignored_on_load(self):
        data = _position(current_price=0.50).model_dump(mode="json")
        data["unrealized_pnl"] = 9999.0
        assert Position.model_validate(data).unrealized_pnl == pytest.approx(25.0)

    def test_rejects_nan(self):
        with pytest.raises(ValidationError):
            _position(size=float("nan"))


class TestPortfolioSnapshot:
    def test_defaults(self):
        snap = PortfolioSnapshot(initial_balance=1000.0, cash_balance=1000.0)
        assert snap.positions == {}
        assert snap.realized_pnl == 0.0


class TestTradeRecord:
    def test_defaults(self):
        t = _trade()
        assert t.status is TradeStatus.OPEN
        assert t.side is Side.BUY
        assert t.exit_price is None
        assert t.pnl is None
        assert t.notes is None
        assert t.closed_at is None
        assert t.timestamp.tzinfo is not None

    def test_ids_are_unique(self):
        assert _trade().id != _trade().id

    def test_close_buy(self):
        t = _trade()
        pnl = t.close(0.60)
        assert pnl == pytest.approx(50.0)
        assert t.pnl == pytest.approx(50.0)
        assert t.exit_price == 0.60
        assert t.status is TradeStatus.CLOSED
        assert t.is_profitable()
        assert t.closed_at is not None
        assert t.closed_at >= t.timestamp

    def test_close_sell_profits_when_price_falls(self):
        t = _trade(side=Side.SELL, entry_price=0.50)
        assert t.close(0.40) == pytest.approx(20.0)
        assert t.is_profitable()

    def test_close_twice_rejected(self):
        t = _trade()
        t.close(0.60)
        with pytest.raises(TradeStateError):
            t.close(0.10)
        assert t.pnl == pytest.approx(50.0)
        assert t.exit_price == 0.60

    def test_close_rejects_bad_exit_price(self):
        t = _trade()
        with pytest.raises(InvalidOrderError):
            t.close(float("nan"))
        with pytest.raises(InvalidOrderError):
            t.close(1.5)
        assert t.status is TradeStatus.OPEN
        assert t.pnl is None

    def test_cancel(self):
        t = _trade()
        t.cancel("market halted")
        assert t.status is TradeStatus.CANCELLED
        assert t.notes == "market halted"
        assert t.pnl is None
        with pytest.raises(TradeStateError):
            t.close(0.5)

    def test_losing_trade_not_profitable(self):
        t = _trade()
        t.close(0.30)
        assert not t.is_profitable()

    def test_json_layout(self):
        t = _trade(notes="n")
        data = t.model_dump(mode="json")
        assert data["side"] == "Buy"
        assert data["status"] == "Open"
        assert data["exit_price"] is None
        assert data["pnl"] is None
        assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None

    def test_load_from_json(self):
        t = TradeRecord.model_validate({
            "id": "abc",
            "timestamp": "2025-06-15T12:00:00Z",
            "market": "M",
            "coin": "ETH",
            "timeframe": "1h",
            "platform": "kalshi",
            "side": "Sell",
            "size": 50.0,
            "entry_price": 0.7,
            "exit_price": 0.5,
            "pnl": 14.28,
            "status": "Closed",
            "strategy": "copy_trade",
            "confidence": 0.8,
            "notes": None,
        })
        assert t.side is Side.SELL
        assert t.status is TradeStatus.CLOSED
        assert t.timestamp == datetime(2025, 6, 15, 12, tzinfo=timezone.utc)

    def test_invalid_side(self):
        with pytest.raises(ValidationError):
            _trade(side="Hold")

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            _trade(confidence=1.5)
        with pytest.raises(ValidationError):
            _trade(confidence=-0.1)

    def test_side_str(self):
        assert str(Side.BUY) == "BUY"
        assert str(Side.SELL) == "SELL"


class TestMarketModels:
    def test_market_id_per_venue(self):
        m = MatchedMarket(name="BTC > 100k", polymarket_id="0xabc", kalshi_ticker="KXBTC-100K")
        assert m.market_id("polymarket") == "0xabc"
        assert m.market_id("kalshi") == "KXBTC-100K"

    def test_quote_sides_optional(self):
        q = Quote(bid=0.45)
        assert q.ask is None

    def test_quote_price_bounds(self):
        with pytest.raises(ValidationError):
            Quote(bid=1.2)


class TestCopyTradeModels:
    def test_activity_from_feed_keys(self):
        a = TradeActivity.model_validate({
            "proxyWallet": "0xabc",
            "timestamp": 1735689600,
            "conditionId": "0xcond",
            "type": "TRADE",
            "usdcSize": 250.0,
            "transactionHash": "0xhash",
            "price": 0.42,
            "asset": "12345",
            "side": "BUY",
            "eventSlug": "btc-up",
        })
        assert a.proxy_wallet == "0xabc"
        assert a.activity_type == "TRADE"
        assert a.usdc_size == 250.0
        assert a.event_slug == "btc-up"
        assert a.timestamp == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_activity_timestamp_in_milliseconds(self):
        a = TradeActivity.model_validate({"timestamp": 1735689600000})
        assert a.timestamp == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_naive_timestamp_assumed_utc(self):
        a = TradeActivity(timestamp=datetime(2025, 1, 1))
        assert a.timestamp.tzinfo is not None

    def test_position_value(self):
        p = TraderPosition.model_validate({"asset": "1", "currentValue": 1234.5})
        assert p.current_value == 1234.5

    def test_copy_trade_fields(self):
        c = CopyTrade(
            trader_address="0xabc",
            transaction_hash="0xh",
            condition_id="0xc",
            asset="1",
            side="BUY",
            original_size=100.0,
            our_size=1.0,
            price=0.5,
        )
        assert c.title == ""

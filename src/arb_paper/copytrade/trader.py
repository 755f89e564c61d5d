"""Copy trading — mirror recent fills of followed Polymarket wallets on paper."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Protocol

import structlog

from arb_paper.config.schema import CopyTradeConfig
from arb_paper.errors import LedgerError, PersistenceError
from arb_paper.models.copytrade import CopyTrade, TradeActivity, TraderPosition

if TYPE_CHECKING:
    from arb_paper.paper.engine import PaperTradingEngine

log = structlog.get_logger("copy_trader")


class ActivitySource(Protocol):
    """Anything that can list a wallet's recent fills and current positions."""

    def get_activity(self, address: str, limit: int) -> list[TradeActivity]: ...

    def get_positions(self, address: str) -> list[TraderPosition]: ...


@dataclass
class TraderSummary:
    address: str
    total_value: float
    positions: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CopyTrader:
    """Scans followed wallets for new fills and sizes them to our book.

    A fill is copied at most once per CopyTrader instance, keyed by its
    transaction hash. Fills below ``min_trade_size`` or older than
    ``max_age_minutes`` are skipped without being marked, so they are
    re-checked (and skipped again) on the next scan.
    """

    def __init__(
        self,
        source: ActivitySource,
        config: CopyTradeConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.source = source
        self.config = config or CopyTradeConfig()
        self.clock = clock
        self.processed: set[str] = set()

    def portfolio_value(self, address: str) -> float:
        """Sum of the current value of every position held by *address*."""
        return sum((p.current_value for p in self.source.get_positions(address)), 0.0)

    def _value_or_default(self, address: str, default: float) -> float:
        try:
            value = self.portfolio_value(address)
        except Exception:
            log.exception("portfolio_value_failed", address=address)
            return default
        return value if value > 0 else default

    def _our_value(self) -> float:
        if not self.config.our_address:
            return self.config.default_our_value
        return self._value_or_default(self.config.our_address, self.config.default_our_value)

    def scan_for_new_trades(self, our_value: float | None = None) -> list[CopyTrade]:
        """One pass over every followed wallet; return the fills to copy.

        ``our_size = usdc_size * our_value / trader_value``, capped at
        ``max_position_size``. *our_value* defaults to the value of
        ``our_address`` (or ``default_our_value``). A wallet whose
        activity cannot be fetched is logged and skipped.
        """
        cfg = self.config
        if our_value is None or our_value <= 0:
            our_value = self._our_value()
        max_age = timedelta(minutes=cfg.max_age_minutes)
        now = self.clock()

        found: list[CopyTrade] = []
        for address in cfg.target_traders:
            try:
                activities = self.source.get_activity(address, cfg.activity_limit)
            except Exception:
                log.exception("activity_fetch_failed", address=address)
                continue

            trader_value = self._value_or_default(address, cfg.default_trader_value)
            size_ratio = our_value / trader_value
            log.debug(
                "copy_size_ratio",
                address=address,
                size_ratio=size_ratio,
                our_value=our_value,
                trader_value=trader_value,
            )

            for activity in activities:
                if activity.transaction_hash in self.processed:
                    continue
                if activity.usdc_size < cfg.min_trade_size:
                    continue
                if now - activity.timestamp > max_age:
                    continue

                our_size = min(activity.usdc_size * size_ratio, cfg.max_position_size)
                self.processed.add(activity.transaction_hash)

                log.info(
                    "copy_trade_found",
                    trader=address[:10],
                    side=activity.side,
                    outcome=activity.outcome,
                    price=activity.price,
                    original_size=activity.usdc_size,
                    our_size=our_size,
                )
                found.append(CopyTrade(
                    trader_address=address,
                    transaction_hash=activity.transaction_hash,
                    condition_id=activity.condition_id,
                    asset=activity.asset,
                    side=activity.side.upper(),
                    original_size=activity.usdc_size,
                    our_size=our_size,
                    price=activity.price,
                    title=activity.title,
                    event_slug=activity.event_slug,
                ))
        return found

    def trader_summaries(self) -> list[TraderSummary]:
        """Value and position count per followed wallet; failures count as empty."""
        summaries = []
        for address in self.config.target_traders:
            try:
                positions = self.source.get_positions(address)
            except Exception:
                log.exception("positions_fetch_failed", address=address)
                positions = []
            total = sum((p.current_value for p in positions), 0.0)
            summaries.append(TraderSummary(address, total, len(positions)))
        return summaries

    def paper_trade(self, engine: PaperTradingEngine, trade: CopyTrade) -> str | None:
        """Mirror *trade* in the paper ledger; return the trade id touched.

        A BUY opens (or adds to) the position keyed by the outcome token.
        A SELL closes our whole position in that token, or is skipped when
        we hold none.
        """
        if trade.side == "SELL":
            if trade.asset not in engine.portfolio.positions:
                log.info("copy_sell_skipped", asset=trade.asset, trader=trade.trader_address[:10])
                return None
            return engine.sell(trade.asset, trade.price).trade_id

        return engine.buy(
            trade.asset,
            "",
            "",
            "polymarket",
            trade.our_size,
            trade.price,
            strategy="copy_trade",
            notes=f"copy {trade.trader_address[:10]} {trade.transaction_hash[:12]}: {trade.title}",
        )

    def run_once(self, engine: PaperTradingEngine) -> list[str]:
        """Scan with our paper book's value and mirror every new fill."""
        booked: list[str] = []
        for trade in self.scan_for_new_trades(our_value=engine.portfolio.total_value()):
            try:
                trade_id = self.paper_trade(engine, trade)
            except PersistenceError:
                raise
            except LedgerError as exc:
                log.warning("copy_trade_declined", asset=trade.asset, reason=str(exc))
                continue
            if trade_id is not None:
                booked.append(trade_id)
        return booked

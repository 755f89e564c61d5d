"""PaperTradingEngine — keeps the portfolio and the trade log in step."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass

import structlog
from sqlalchemy.exc import SQLAlchemyError

from arb_paper.accounting import validate_confidence
from arb_paper.config.schema import DatabaseConfig, PaperConfig
from arb_paper.errors import PersistenceError
from arb_paper.metrics.formulas import TradeStats, compute_trade_stats
from arb_paper.models.position import Position
from arb_paper.models.trade import Side, TradeRecord
from arb_paper.paper.portfolio import Portfolio
from arb_paper.paper.trade_log import TradeLog
from arb_paper.storage.base import SnapshotStore
from arb_paper.storage.guarded import GuardedStore
from arb_paper.storage.json_file import JsonFileStore

log = structlog.get_logger("paper_engine")


@dataclass
class PortfolioSummary:
    """Read-only view over the portfolio and the trade log."""

    total_value: float
    cash_balance: float
    positions_count: int
    realized_pnl: float
    unrealized_pnl: float
    total_pnl: float
    pnl_percent: float
    win_rate: float
    wins: int
    total_trades: int
    best_trade_pnl: float | None
    worst_trade_pnl: float | None


@dataclass
class SellResult:
    """Outcome of a sell.

    ``trade_id`` is None when the portfolio position was closed but no open
    trade record matched the market, i.e. the audit trail is out of step.
    """

    market: str
    exit_price: float
    pnl: float
    trade_id: str | None

    @property
    def reconciled(self) -> bool:
        return self.trade_id is not None


class PaperTradingEngine:
    """Coordinates paper buys and sells across the portfolio and the trade log.

    Per market: no position → buy → open → sell → no position. Repeated
    buys into an open market blend into the existing position.

    Store write failures never interrupt an engine operation half-way:
    both components finish their in-memory change, then the failure is
    raised (``persistence_errors="raise"``) or only logged (``"log"``).
    Only failures from the operation itself are reported. The components'
    own stores are left in place, so calling ``portfolio`` or
    ``trade_log`` directly raises on a failed write as usual.
    """

    def __init__(
        self,
        portfolio: Portfolio,
        trade_log: TradeLog,
        persistence_errors: str = "raise",
    ) -> None:
        if persistence_errors not in ("raise", "log"):
            raise ValueError(f"persistence_errors must be 'raise' or 'log', got {persistence_errors!r}")
        self.portfolio = portfolio
        self.trade_log = trade_log
        self.persistence_errors = persistence_errors

    @contextmanager
    def _persisting(self) -> Iterator[None]:
        """Guard both components' stores for the duration of one operation."""
        components = [(self.portfolio, "portfolio"), (self.trade_log, "trades")]
        guards: list[GuardedStore] = []
        swapped = []
        for component, name in components:
            if component.store is not None:
                guard = GuardedStore(component.store, name)
                swapped.append((component, component.store))
                component.store = guard
                guards.append(guard)
        try:
            yield
        finally:
            for component, store in swapped:
                component.store = store

        failures = [exc for g in guards for exc in g.take_failures()]
        if failures and self.persistence_errors == "raise":
            raise PersistenceError(
                "state changed in memory but was not saved: "
                + "; ".join(str(exc) for exc in failures)
            ) from failures[0]

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def from_stores(
        cls,
        portfolio_store: SnapshotStore,
        trades_store: SnapshotStore,
        initial_balance: float = 1000.0,
        persistence_errors: str = "raise",
    ) -> PaperTradingEngine:
        """Load (or create) the portfolio and the trade log from two stores."""
        portfolio = Portfolio.load_or_create(portfolio_store, initial_balance)
        trade_log = TradeLog(trades_store)
        return cls(portfolio, trade_log, persistence_errors=persistence_errors)

    @classmethod
    def from_config(
        cls,
        config: PaperConfig,
        database: DatabaseConfig | None = None,
    ) -> PaperTradingEngine:
        """Build an engine with the storage backend named in *config*."""
        if config.storage == "sql":
            from arb_paper.db.engine import create_ledger_engine
            from arb_paper.storage.sql import SqlSnapshotStore

            url = (database or DatabaseConfig()).url
            try:
                db_engine = create_ledger_engine(url)
            except (SQLAlchemyError, OSError) as exc:
                raise PersistenceError(f"cannot open database {url}: {exc}") from exc
            portfolio_store: SnapshotStore = SqlSnapshotStore(db_engine, "portfolio")
            trades_store: SnapshotStore = SqlSnapshotStore(db_engine, "trades")
        else:
            portfolio_store = JsonFileStore(config.portfolio_path)
            trades_store = JsonFileStore(config.trades_path)

        log.info(
            "paper_engine_starting",
            storage=config.storage,
            portfolio_store=repr(portfolio_store),
            trades_store=repr(trades_store),
        )
        return cls.from_stores(
            portfolio_store,
            trades_store,
            initial_balance=config.initial_balance,
            persistence_errors=config.persistence_errors,
        )

    # ── Trading ───────────────────────────────────────────────

    def buy(
        self,
        market: str,
        coin: str,
        timeframe: str,
        platform: str,
        size_usd: float,
        price: float,
        strategy: str = "manual",
        confidence: float = 0.0,
        notes: str | None = None,
    ) -> str:
        """Open (or add to) a position and record the trade; return its id.

        InsufficientBalanceError propagates before the trade log is touched.
        """
        validate_confidence(confidence)
        with self._persisting():
            self.portfolio.open_position(market, coin, platform, size_usd, price)

            trade = TradeRecord(
                market=market,
                coin=coin,
                timeframe=timeframe,
                platform=platform,
                side=Side.BUY,
                size=size_usd,
                entry_price=price,
                strategy=strategy,
                confidence=confidence,
                notes=notes,
            )
            self.trade_log.add_trade(trade)

            log.info(
                "paper_buy",
                trade_id=trade.id,
                market=market,
                platform=platform,
                size_usd=size_usd,
                price=price,
                strategy=strategy,
                confidence=confidence,
            )
        return trade.id

    def sell(self, market: str, exit_price: float) -> SellResult:
        """Close the whole position in *market* and the first open trade for it.

        PositionNotFoundError propagates with nothing changed.
        """
        with self._persisting():
            pnl = self.portfolio.close_position(market, exit_price)

            trade = self.trade_log.find_open(market)
            trade_id: str | None = None
            if trade is not None:
                self.trade_log.close_trade(trade.id, exit_price)
                trade_id = trade.id
            else:
                log.warning("sell_without_open_trade", market=market, exit_price=exit_price, pnl=pnl)

            log.info("paper_sell", market=market, exit_price=exit_price, pnl=pnl, trade_id=trade_id)
        return SellResult(market=market, exit_price=exit_price, pnl=pnl, trade_id=trade_id)

    def update_prices(self, prices: Mapping[str, float]) -> int:
        """Mark open positions to *prices*; return how many were updated."""
        with self._persisting():
            updated = self.portfolio.update_prices(prices)
        return updated

    def reset(self) -> None:
        """Reset the portfolio. The trade log is kept as history."""
        with self._persisting():
            self.portfolio.reset()

    # ── Read-through views ────────────────────────────────────

    def summary(self) -> PortfolioSummary:
        win_rate, wins, total = self.trade_log.win_rate()
        best = self.trade_log.best_trade()
        worst = self.trade_log.worst_trade()
        return PortfolioSummary(
            total_value=self.portfolio.total_value(),
            cash_balance=self.portfolio.cash_balance,
            positions_count=self.portfolio.position_count(),
            realized_pnl=self.portfolio.realized_pnl,
            unrealized_pnl=self.portfolio.unrealized_pnl(),
            total_pnl=self.portfolio.total_pnl(),
            pnl_percent=self.portfolio.pnl_percent(),
            win_rate=win_rate,
            wins=wins,
            total_trades=total,
            best_trade_pnl=best.pnl if best is not None else None,
            worst_trade_pnl=worst.pnl if worst is not None else None,
        )

    def stats(self) -> TradeStats:
        return compute_trade_stats(self.trade_log.get_all(), self.portfolio.initial_balance)

    def open_positions(self) -> list[Position]:
        return list(self.portfolio.positions.values())

    def recent_trades(self, n: int = 10) -> list[TradeRecord]:
        return self.trade_log.get_recent(n)

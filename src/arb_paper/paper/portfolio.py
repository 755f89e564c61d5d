"""Portfolio — cash, per-market positions and realised P&L, written through on every change."""

from __future__ import annotations

from collections.abc import Mapping

import structlog
from pydantic import ValidationError

from arb_paper.accounting import (
    blend_average_price,
    calculate_position_pnl,
    calculate_shares,
    validate_entry_price,
    validate_exit_price,
    validate_size,
)
from arb_paper.errors import (
    InsufficientBalanceError,
    InvalidOrderError,
    PersistenceError,
    PositionNotFoundError,
)
from arb_paper.models.position import PortfolioSnapshot, Position
from arb_paper.storage.base import SnapshotStore

log = structlog.get_logger("portfolio")


class Portfolio:
    """Virtual portfolio for paper trading.

    Positions are keyed by market identifier. Every mutating call writes the
    full snapshot to ``store``; a write failure raises
    :class:`PersistenceError` after the in-memory change has been applied.
    """

    def __init__(
        self,
        initial_balance: float,
        store: SnapshotStore | None = None,
        *,
        cash_balance: float | None = None,
        positions: Mapping[str, Position] | None = None,
        realized_pnl: float = 0.0,
    ) -> None:
        self._initial_balance = float(initial_balance)
        self.cash_balance = self._initial_balance if cash_balance is None else float(cash_balance)
        self.positions: dict[str, Position] = dict(positions or {})
        self.realized_pnl = float(realized_pnl)
        self.store = store

    @property
    def initial_balance(self) -> float:
        return self._initial_balance

    # ── Persistence ───────────────────────────────────────────

    @classmethod
    def from_snapshot(
        cls,
        snapshot: PortfolioSnapshot,
        store: SnapshotStore | None = None,
    ) -> Portfolio:
        return cls(
            snapshot.initial_balance,
            store,
            cash_balance=snapshot.cash_balance,
            positions=snapshot.positions,
            realized_pnl=snapshot.realized_pnl,
        )

    @classmethod
    def load_or_create(cls, store: SnapshotStore, default_balance: float) -> Portfolio:
        """Load the stored snapshot, or start fresh with *default_balance*.

        A missing or unreadable snapshot yields a fresh portfolio which is
        written back immediately.
        """
        try:
            data = store.load()
        except PersistenceError as exc:
            log.warning("portfolio_snapshot_unreadable", store=repr(store), error=str(exc))
            data = None

        if data is not None:
            try:
                snapshot = PortfolioSnapshot.model_validate(data)
            except ValidationError as exc:
                log.warning(
                    "portfolio_snapshot_invalid",
                    store=repr(store),
                    errors=exc.error_count(),
                )
            else:
                log.info(
                    "portfolio_loaded",
                    cash_balance=snapshot.cash_balance,
                    positions=len(snapshot.positions),
                )
                return cls.from_snapshot(snapshot, store)

        portfolio = cls(default_balance, store)
        portfolio.save()
        log.info("portfolio_created", initial_balance=portfolio.initial_balance)
        return portfolio

    def snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot(
            initial_balance=self._initial_balance,
            cash_balance=self.cash_balance,
            positions={k: p.model_copy() for k, p in self.positions.items()},
            realized_pnl=self.realized_pnl,
        )

    def save(self) -> None:
        """Write the full snapshot through to the store (no-op without one)."""
        if self.store is None:
            return
        self.store.save(self.snapshot().model_dump(mode="json"))

    # ── Position lifecycle ────────────────────────────────────

    def open_position(
        self,
        market: str,
        coin: str,
        platform: str,
        size_usd: float,
        price: float,
    ) -> Position:
        """Buy *size_usd* worth of shares in *market* at *price*.

        Adds to an existing position at a blended average price. Raises
        InsufficientBalanceError (cash unchanged) when *size_usd* exceeds
        the cash balance.
        """
        if not market:
            raise InvalidOrderError("market must be non-empty")
        validate_size(size_usd)
        validate_entry_price(price)
        if size_usd > self.cash_balance:
            raise InsufficientBalanceError(self.cash_balance, size_usd)

        self.cash_balance -= size_usd
        shares = calculate_shares(size_usd, price)

        pos = self.positions.get(market)
        if pos is not None:
            pos.avg_price = blend_average_price(pos.size, pos.avg_price, size_usd, shares)
            pos.size += shares
        else:
            pos = Position(
                market=market,
                coin=coin,
                platform=platform,
                size=shares,
                avg_price=price,
                current_price=price,
            )
            self.positions[market] = pos

        log.info(
            "position_opened",
            market=market,
            size_usd=size_usd,
            price=price,
            shares=shares,
            avg_price=pos.avg_price,
            cash_balance=self.cash_balance,
        )
        self.save()
        return pos

    def close_position(self, market: str, exit_price: float) -> float:
        """Liquidate the whole position in *market* and return realised P&L."""
        if market not in self.positions:
            raise PositionNotFoundError(market)
        validate_exit_price(exit_price)

        position = self.positions.pop(market)
        pnl = calculate_position_pnl(position.size, position.avg_price, exit_price)
        self.cash_balance += position.size * exit_price
        self.realized_pnl += pnl

        log.info(
            "position_closed",
            market=market,
            size=position.size,
            avg_price=position.avg_price,
            exit_price=exit_price,
            pnl=pnl,
            cash_balance=self.cash_balance,
        )
        self.save()
        return pnl

    def update_prices(self, prices: Mapping[str, float]) -> int:
        """Mark every held market present in *prices*; return how many moved.

        Markets missing from *prices* keep their last mark. Non-finite or
        out-of-range prices are skipped with a warning.
        """
        updated = 0
        for market, position in self.positions.items():
            if market not in prices:
                continue
            price = prices[market]
            try:
                validate_exit_price(price)
            except ValueError:
                log.warning("mark_price_rejected", market=market, price=price)
                continue
            position.update_pnl(price)
            updated += 1
        self.save()
        return updated

    def reset(self) -> None:
        """Back to the initial balance with no positions and no realised P&L."""
        self.cash_balance = self._initial_balance
        self.positions.clear()
        self.realized_pnl = 0.0
        log.info("portfolio_reset", initial_balance=self._initial_balance)
        self.save()

    # ── Valuation ─────────────────────────────────────────────

    def total_value(self) -> float:
        """Cash plus the marked value of every position."""
        return self.cash_balance + sum(p.current_value() for p in self.positions.values())

    def unrealized_pnl(self) -> float:
        return sum((p.unrealized_pnl for p in self.positions.values()), 0.0)

    def total_pnl(self) -> float:
        return self.realized_pnl + self.unrealized_pnl()

    def pnl_percent(self) -> float:
        if self._initial_balance == 0:
            return 0.0
        return self.total_pnl() / self._initial_balance * 100

    def position_count(self) -> int:
        return len(self.positions)

"""Position and portfolio snapshot models for paper trading."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Position(BaseModel):
    """An open holding of shares in one market, tracked at average entry price."""

    model_config = ConfigDict(allow_inf_nan=False)

    market: str
    coin: str = ""
    platform: str = ""
    size: float
    avg_price: float
    current_price: float

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unrealized_pnl(self) -> float:
        return self.size * (self.current_price - self.avg_price)

    def update_pnl(self, current_price: float) -> None:
        """Mark the position at *current_price*."""
        self.current_price = current_price

    def current_value(self) -> float:
        return self.size * self.current_price

    def initial_value(self) -> float:
        return self.size * self.avg_price


class PortfolioSnapshot(BaseModel):
    """The full persisted state of a portfolio."""

    initial_balance: float
    cash_balance: float
    positions: dict[str, Position] = Field(default_factory=dict)
    realized_pnl: float = 0.0

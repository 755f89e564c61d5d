"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///data/ledger.db"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"


class PaperConfig(BaseModel):
    initial_balance: float = Field(default=1000.0, ge=0.0)
    data_dir: str = "data"
    portfolio_file: str = "portfolio.json"
    trades_file: str = "paper_trades.json"
    # "json" writes two files under data_dir, "sql" writes rows to database.url
    storage: Literal["json", "sql"] = "json"
    persistence_errors: Literal["raise", "log"] = "raise"

    @property
    def portfolio_path(self) -> Path:
        return Path(self.data_dir) / self.portfolio_file

    @property
    def trades_path(self) -> Path:
        return Path(self.data_dir) / self.trades_file


class ArbitrageConfig(BaseModel):
    min_profit_threshold: float = 0.02
    max_position_size: float = 100.0
    scan_interval_s: float = Field(default=10.0, gt=0.0)


class CopyTradeConfig(BaseModel):
    target_traders: list[str] = Field(default_factory=list)
    # wallet whose positions size our side; empty uses default_our_value
    our_address: str = ""
    max_position_size: float = Field(default=50.0, gt=0.0)
    min_trade_size: float = Field(default=5.0, ge=0.0)
    max_age_minutes: float = Field(default=60.0, gt=0.0)
    activity_limit: int = Field(default=25, gt=0)
    default_our_value: float = Field(default=1000.0, gt=0.0)
    default_trader_value: float = Field(default=100000.0, gt=0.0)


class AppConfig(BaseModel):
    paper: PaperConfig = Field(default_factory=PaperConfig)
    arbitrage: ArbitrageConfig = Field(default_factory=ArbitrageConfig)
    copy_trade: CopyTradeConfig = Field(default_factory=CopyTradeConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

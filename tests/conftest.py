"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine

from arb_paper.paper.engine import PaperTradingEngine
from arb_paper.paper.portfolio import Portfolio
from arb_paper.paper.trade_log import TradeLog
from arb_paper.storage.memory import MemoryStore


@pytest.fixture
def portfolio_store():
    return MemoryStore()


@pytest.fixture
def trades_store():
    return MemoryStore()


@pytest.fixture
def portfolio(portfolio_store):
    """A $1000 portfolio writing through to an in-memory store."""
    return Portfolio.load_or_create(portfolio_store, 1000.0)


@pytest.fixture
def trade_log(trades_store):
    return TradeLog(trades_store)


@pytest.fixture
def engine(portfolio_store, trades_store):
    """A $1000 engine over in-memory stores."""
    return PaperTradingEngine.from_stores(portfolio_store, trades_store, initial_balance=1000.0)


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine."""
    engine = create_engine("sqlite:///:memory:")
    yield engine
    engine.dispose()

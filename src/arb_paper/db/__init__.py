"""Database layer — engine, ORM base, snapshot table."""

from arb_paper.db.base import Base
from arb_paper.db.engine import create_ledger_engine

__all__ = ["Base", "create_ledger_engine"]

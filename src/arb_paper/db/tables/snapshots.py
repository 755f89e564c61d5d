"""SQLAlchemy ORM model for persisted ledger documents."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from arb_paper.db.base import Base


class SnapshotRow(Base):
    __tablename__ = "ledger_snapshots"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

"""SQL-backed snapshot store — one row per document key."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from arb_paper.db.base import Base
from arb_paper.db.tables.snapshots import SnapshotRow
from arb_paper.errors import PersistenceError

log = structlog.get_logger("sql_store")


class SqlSnapshotStore:
    """Stores the document as JSON in ``ledger_snapshots`` under *key*.

    The table is created on construction if missing. Each save is its own
    transaction, so a failed write leaves the previous document in place.
    """

    def __init__(self, engine: Engine, key: str) -> None:
        self.engine = engine
        self.key = key
        try:
            Base.metadata.create_all(engine, tables=[SnapshotRow.__table__])
        except SQLAlchemyError as exc:
            raise PersistenceError(f"cannot prepare {SnapshotRow.__tablename__}: {exc}") from exc

    def __repr__(self) -> str:
        return f"SqlSnapshotStore({self.engine.url!s}, key={self.key!r})"

    def load(self) -> Any | None:
        try:
            with Session(self.engine) as session:
                row = session.get(SnapshotRow, self.key)
                if row is None:
                    return None
                return row.payload
        except SQLAlchemyError as exc:
            raise PersistenceError(f"cannot read snapshot {self.key!r}: {exc}") from exc

    def save(self, document: Any) -> None:
        now = datetime.now(timezone.utc)
        try:
            with Session(self.engine) as session:
                row = session.get(SnapshotRow, self.key)
                if row is None:
                    session.add(SnapshotRow(key=self.key, payload=document, updated_at=now))
                else:
                    row.payload = document
                    row.updated_at = now
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"cannot write snapshot {self.key!r}: {exc}") from exc
        log.debug("snapshot_written", key=self.key)

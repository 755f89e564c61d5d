"""Import all table modules so Base.metadata knows about them."""

from arb_paper.db.tables.snapshots import SnapshotRow

__all__ = ["SnapshotRow"]

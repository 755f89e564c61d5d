"""Snapshot stores — where the portfolio and trade history are written through."""

from arb_paper.storage.base import SnapshotStore
from arb_paper.storage.guarded import GuardedStore
from arb_paper.storage.json_file import JsonFileStore
from arb_paper.storage.memory import MemoryStore
from arb_paper.storage.sql import SqlSnapshotStore

__all__ = ["GuardedStore", "JsonFileStore", "MemoryStore", "SnapshotStore", "SqlSnapshotStore"]

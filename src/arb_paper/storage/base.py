"""Snapshot store interface."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SnapshotStore(Protocol):
    """Holds exactly one JSON-compatible document.

    ``load`` returns None when nothing has been stored yet and raises
    :class:`~arb_paper.errors.PersistenceError` when the stored document
    cannot be read or parsed. ``save`` replaces the whole document and
    raises ``PersistenceError`` on failure.
    """

    def load(self) -> Any | None: ...

    def save(self, document: Any) -> None: ...

"""Store wrapper that records write failures instead of raising them."""

from __future__ import annotations

from typing import Any

import structlog

from arb_paper.errors import PersistenceError
from arb_paper.storage.base import SnapshotStore

log = structlog.get_logger("guarded_store")


class GuardedStore:
    """Wraps a store so a failed save does not abort the caller mid-operation.

    Failures are logged and queued; the owner drains them with
    :meth:`take_failures` once its operation is complete.
    """

    def __init__(self, inner: SnapshotStore, name: str) -> None:
        self.inner = inner
        self.name = name
        self._failures: list[PersistenceError] = []

    def __repr__(self) -> str:
        return repr(self.inner)

    def load(self) -> Any | None:
        return self.inner.load()

    def save(self, document: Any) -> None:
        try:
            self.inner.save(document)
        except PersistenceError as exc:
            log.error("persistence_failed", store=self.name, error=str(exc))
            self._failures.append(exc)

    def take_failures(self) -> list[PersistenceError]:
        failures, self._failures = self._failures, []
        return failures

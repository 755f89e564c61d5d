"""In-memory store for tests and throwaway engines."""

from __future__ import annotations

import copy
from typing import Any

from arb_paper.errors import PersistenceError


class MemoryStore:
    """Keeps a deep copy of the last saved document.

    Set ``fail_saves`` / ``fail_loads`` to simulate a broken backend.
    """

    def __init__(self, document: Any | None = None) -> None:
        self.document = copy.deepcopy(document)
        self.saves = 0
        self.fail_saves = False
        self.fail_loads = False

    def load(self) -> Any | None:
        if self.fail_loads:
            raise PersistenceError("memory store: load failure")
        return copy.deepcopy(self.document)

    def save(self, document: Any) -> None:
        if self.fail_saves:
            raise PersistenceError("memory store: save failure")
        self.document = copy.deepcopy(document)
        self.saves += 1

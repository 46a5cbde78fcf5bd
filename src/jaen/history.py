from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator

from .models import HistorySnapshot

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 40


class HistoryStack:
    """Bounded undo log. Keeps the newest `limit` snapshots; there is no redo."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit <= 0:
            raise ValueError(f"History limit must be > 0, got {limit}")
        self.limit = limit
        self._items: deque[HistorySnapshot] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[HistorySnapshot]:
        # Oldest first.
        return iter(self._items)

    def push(self, snapshot: HistorySnapshot) -> None:
        if len(self._items) == self.limit:
            logger.debug("History full, dropping oldest snapshot")
        self._items.append(snapshot)

    def pop(self) -> HistorySnapshot | None:
        if not self._items:
            return None
        return self._items.pop()

    def peek(self) -> HistorySnapshot | None:
        return self._items[-1] if self._items else None

    def clear(self) -> None:
        self._items.clear()

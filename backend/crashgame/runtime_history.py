from __future__ import annotations

from collections import deque
from typing import Any

from .runtime_constants import HISTORY_LIMIT
from .runtime_types import HistoryEntry


class HistoryLog:
    """Newest-first record of crash results, capped at ``limit`` entries."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self.limit = max(1, int(limit))
        self._entries: deque[HistoryEntry] = deque(maxlen=self.limit)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, multiplier: str, timestamp: str) -> HistoryEntry:
        entry = HistoryEntry(multiplier=multiplier, timestamp=timestamp)
        # appendleft on a full deque drops the oldest entry from the right.
        self._entries.appendleft(entry)
        return entry

    def latest(self) -> HistoryEntry | None:
        return self._entries[0] if self._entries else None

    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def to_payload(self) -> list[dict[str, Any]]:
        return [entry.to_payload() for entry in self._entries]

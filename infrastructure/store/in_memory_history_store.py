from __future__ import annotations

import itertools
from collections import deque
from threading import Lock
from typing import Deque, List

from application.ports.history_store import HistoryStorePort
from domain.history import HistoryEntry

DEFAULT_MAX_ENTRIES = 1000


class InMemoryHistoryStore(HistoryStorePort):
    """追記のみ。max_entries を超えると古いものから消える。"""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._entries: Deque[HistoryEntry] = deque(maxlen=max_entries)
        self._ids = itertools.count(1)
        self._lock = Lock()

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        with self._lock:
            saved = entry.with_id(next(self._ids))
            self._entries.append(saved)
            return saved

    def list_recent(self, limit: int = 100) -> List[HistoryEntry]:
        with self._lock:
            newest_first = sorted(self._entries, key=lambda e: (e.created_at, e.id or 0), reverse=True)
        return newest_first[: max(0, limit)]

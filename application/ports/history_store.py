from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from domain.history import HistoryEntry


class HistoryStorePort(ABC):
    @abstractmethod
    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Persist a new entry and return it with its assigned id. Existing entries are never touched."""
        ...

    @abstractmethod
    def list_recent(self, limit: int = 100) -> List[HistoryEntry]:
        ...

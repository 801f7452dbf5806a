from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from domain.ids import EntityId
from domain.request import QueryParam


@dataclass(frozen=True)
class HistoryEntry:
    method: str
    url: str
    status: int
    response_time_ms: int
    response_body: str
    request_headers: Dict[str, str]
    response_headers: Dict[str, str]
    created_at: datetime

    id: Optional[int] = None
    request_id: Optional[EntityId] = None
    collection_id: Optional[EntityId] = None
    request_body: Any = None
    query_params: Tuple[QueryParam, ...] = ()
    request_name: Optional[str] = None
    error: Optional[str] = None

    def with_id(self, entry_id: int) -> "HistoryEntry":
        return replace(self, id=entry_id)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

TRANSPORT_FAILURE_STATUS = 0


@dataclass(frozen=True)
class DispatchResult:
    status: int
    status_text: str
    headers: Dict[str, str]
    body: Any
    response_time_ms: int
    size: int = 0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400

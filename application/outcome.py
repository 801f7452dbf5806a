from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from application.exceptions import DispatchError
from domain.dispatch import TRANSPORT_FAILURE_STATUS, DispatchResult


@dataclass(frozen=True)
class SendOutcome:
    success: bool
    status: int
    status_text: str
    data: Any
    response_time_ms: int
    headers: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def from_result(cls, result: DispatchResult) -> "SendOutcome":
        return cls(
            success=True,
            status=result.status,
            status_text=result.status_text,
            data=result.body,
            response_time_ms=result.response_time_ms,
            headers=dict(result.headers),
        )

    @classmethod
    def from_error(cls, exc: Exception, response_time_ms: int) -> "SendOutcome":
        message = str(exc) or type(exc).__name__
        return cls(
            success=False,
            status=TRANSPORT_FAILURE_STATUS,
            status_text=message or "Request Failed",
            data={"error": message},
            response_time_ms=response_time_ms,
            error=message,
            error_kind=exc.kind if isinstance(exc, DispatchError) else "error",
        )

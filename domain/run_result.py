from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from domain.ids import EntityId


class ProgressStatus(str, Enum):
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class RunResult:
    request_id: Optional[EntityId]
    request_name: str
    success: bool
    status: Optional[int] = None
    response_time_ms: Optional[int] = None
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.success and self.status is not None and self.status < 400


@dataclass(frozen=True)
class RunSummary:
    total: int
    passed: int
    failed: int

    @classmethod
    def from_results(cls, results: Sequence[RunResult]) -> "RunSummary":
        passed = sum(1 for r in results if r.passed)
        return cls(total=len(results), passed=passed, failed=len(results) - passed)


@dataclass(frozen=True)
class RunProgress:
    current: int
    total: int
    request_name: str
    request_id: Optional[EntityId]
    status: ProgressStatus
    error: Optional[str] = None


@dataclass(frozen=True)
class CollectionRunReport:
    run_id: str
    results: List[RunResult] = field(default_factory=list)
    summary: RunSummary = field(default_factory=lambda: RunSummary(total=0, passed=0, failed=0))
    collection_id: Optional[EntityId] = None
    message: Optional[str] = None

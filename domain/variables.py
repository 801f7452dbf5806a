from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class VariableScope(str, Enum):
    COLLECTION = "collection"
    GLOBAL = "global"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class VariableContext:
    global_variables: Mapping[str, Any] = field(default_factory=dict)
    collection_variables: Optional[Mapping[str, Any]] = None

    def lookup(self, scope: VariableScope, name: str) -> str:
        source = self.collection_variables if scope is VariableScope.COLLECTION else self.global_variables
        if not source:
            return ""
        value = source.get(name)
        # 空文字は未定義と同じ扱い
        if value is None or value == "":
            return ""
        return str(value)


@dataclass(frozen=True)
class ResolvedVariable:
    name: str
    value: str
    scope: VariableScope
    original_text: str


@dataclass(frozen=True)
class ResolutionPreview:
    resolved: Any
    unresolved: list[str] = field(default_factory=list)
    variables: list[ResolvedVariable] = field(default_factory=list)

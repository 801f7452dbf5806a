from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from domain.http_method import HttpMethod
from domain.ids import EntityId

FILE_SENTINEL = "FILE::"


class AuthType(str, Enum):
    NONE = "none"
    BEARER = "bearer"
    BASIC = "basic"
    APIKEY = "apikey"


class FormFieldKind(str, Enum):
    TEXT = "text"
    FILE = "file"


@dataclass(frozen=True)
class QueryParam:
    key: str
    value: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class FormField:
    key: str
    value: str = ""
    enabled: bool = True
    kind: FormFieldKind = FormFieldKind.TEXT

    def as_wire_value(self) -> str:
        if self.kind is FormFieldKind.FILE:
            return f"{FILE_SENTINEL}{self.value}"
        return self.value


@dataclass(frozen=True)
class AuthSpec:
    type: AuthType = AuthType.NONE
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    api_key_header: Optional[str] = None


@dataclass(frozen=True)
class RequestDescriptor:
    method: HttpMethod
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None  # str | Mapping | Tuple[FormField, ...]
    auth: AuthSpec = field(default_factory=AuthSpec)
    query_params: Tuple[QueryParam, ...] = ()
    transaction_id: Optional[str] = None
    timeout_ms: Optional[int] = None

    # saved request linkage
    id: Optional[EntityId] = None
    name: str = ""
    collection_id: Optional[EntityId] = None
    order: Optional[int] = None

    def display_name(self) -> str:
        return self.name or f"{self.method.value} {self.url}"


def form_fields_to_map(fields: Tuple[FormField, ...]) -> Dict[str, str]:
    """有効な form field を encoder 用の key/value map にする（同じ key は後勝ち）。"""
    out: Dict[str, str] = {}
    for f in fields:
        if not f.enabled or not f.key:
            continue
        out[f.key] = f.as_wire_value()
    return out

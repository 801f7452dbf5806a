# application/ports/http_client.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from domain.http_method import HttpMethod

# (field name, (filename or None, content))
MultipartPart = Tuple[str, Tuple[Optional[str], Union[bytes, str]]]


@dataclass(frozen=True)
class OutboundRequest:
    method: HttpMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    content: Optional[Union[bytes, str]] = None
    files: Optional[List[MultipartPart]] = None


@dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    url: str
    headers: Dict[str, str]
    content: bytes = b""
    text: str = ""
    encoding: Optional[str] = None


class HttpClientPort(ABC):
    @abstractmethod
    async def send(self, request: OutboundRequest) -> HttpResponse:
        """
        Perform one network call. Transport failures raise TransportError;
        HTTP error statuses are returned as responses.
        """
        ...

    async def aclose(self) -> None:
        return None

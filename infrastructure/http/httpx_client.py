# infrastructure/http/httpx_client.py
from __future__ import annotations

from typing import Dict, Optional

import httpx

from application.exceptions import DispatchTimeoutError, TransportError
from application.ports.http_client import HttpClientPort, HttpResponse, OutboundRequest


class HttpxAsyncClient(HttpClientPort):
    """
    httpx.AsyncClient による送信。タイムアウトは DispatchService が管理するので
    client 側は timeout=None で動かす。
    """

    def __init__(
        self,
        base_headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        follow_redirects: bool = True,
        verify: bool = True,
    ):
        self._base_headers = base_headers or {}
        self._client = httpx.AsyncClient(
            timeout=None,
            follow_redirects=follow_redirects,
            transport=transport,
            verify=verify,
        )

    async def send(self, request: OutboundRequest) -> HttpResponse:
        merged = dict(self._base_headers)
        merged.update(request.headers or {})

        try:
            resp = await self._client.request(
                method=request.method.value,
                url=request.url,
                headers=merged,
                content=request.content,
                files=request.files or None,
            )
        except httpx.ConnectError as e:
            raise TransportError(f"Connection error: {e}") from e
        except httpx.TimeoutException as e:
            raise DispatchTimeoutError(f"Transport timeout: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request error: {e}") from e

        return HttpResponse(
            status=resp.status_code,
            reason=resp.reason_phrase,
            url=str(resp.url),
            headers={k: v for k, v in resp.headers.items()},
            content=resp.content,
            text=resp.text,
            encoding=resp.encoding,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

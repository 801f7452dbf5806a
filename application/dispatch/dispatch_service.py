# application/dispatch/dispatch_service.py
from __future__ import annotations

import asyncio
import base64
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from application.dispatch.transaction_registry import AbortReason, CancellationToken, TransactionRegistry
from application.exceptions import DispatchError, DispatchTimeoutError, RequestCancelledError
from application.ports.http_client import HttpClientPort, HttpResponse, OutboundRequest
from application.ports.logger import LoggerPort
from application.services.payload_encoder import CONTENT_TYPE, PayloadEncoder, find_header
from application.services.redactor import mask_dict
from domain.dispatch import DispatchResult
from domain.http_method import HttpMethod

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_CONNECTION_TEST_TIMEOUT_MS = 5_000


@dataclass(frozen=True)
class DispatchOptions:
    method: HttpMethod = HttpMethod.GET
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    timeout_ms: Optional[int] = None
    transaction_id: Optional[str] = None
    is_json: Optional[bool] = None


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


def decode_body(response: HttpResponse) -> Any:
    """
    レスポンス body を Content-Type で型付けする。
    application/json → パース結果（不正な JSON は text）、text/* → text、それ以外 → base64
    """
    found = find_header(response.headers, CONTENT_TYPE)
    content_type = (found[1] if found else "").lower()
    if "application/json" in content_type:
        try:
            return json.loads(response.text)
        except ValueError:
            return response.text
    if "text/" in content_type:
        return response.text
    return base64.b64encode(response.content or b"").decode("ascii")


class DispatchService:
    """
    タイムアウトと協調キャンセル付きで 1 回の送信を行う。

    HTTP エラーステータスは DispatchResult として返す。例外になるのは
    通信失敗・タイムアウト・キャンセルのみ（TransportError / DispatchTimeoutError /
    RequestCancelledError）。
    encode（multipart のファイル読み込み）も送信と同じタスク内で行うので、
    キャンセルとタイムアウトの対象になる。
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        encoder: PayloadEncoder,
        logger: LoggerPort,
        registry: Optional[TransactionRegistry] = None,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        connection_test_timeout_ms: int = DEFAULT_CONNECTION_TEST_TIMEOUT_MS,
    ):
        self._http = http_client
        self._encoder = encoder
        self._logger = logger
        self._registry = registry or TransactionRegistry()
        self._default_timeout_ms = default_timeout_ms
        self._connection_test_timeout_ms = connection_test_timeout_ms

    @property
    def registry(self) -> TransactionRegistry:
        return self._registry

    def cancel(self, transaction_id: str) -> bool:
        cancelled = self._registry.cancel_by_id(transaction_id)
        if cancelled:
            self._logger.info("dispatch.cancel_requested", transaction_id=transaction_id)
        return cancelled

    async def send(self, url: str, options: DispatchOptions) -> DispatchResult:
        started = time.perf_counter()
        timeout_ms = options.timeout_ms or self._default_timeout_ms
        tx = options.transaction_id

        token = CancellationToken()
        task = asyncio.ensure_future(self._encode_and_send(url, options))
        token.attach(task)
        if tx:
            self._registry.register(tx, token)
        timer = asyncio.get_running_loop().call_later(timeout_ms / 1000, token.abort, AbortReason.TIMEOUT)

        try:
            response = await task
        except asyncio.CancelledError:
            if token.reason is None:
                # 呼び出し側自身のキャンセルはそのまま伝播
                raise
            elapsed = _elapsed_ms(started)
            if token.reason is AbortReason.TIMEOUT:
                message = f"Request timeout after {timeout_ms}ms"
                self._logger.error("dispatch.timeout", url=url, response_time_ms=elapsed, transaction_id=tx)
                raise DispatchTimeoutError(message, response_time_ms=elapsed) from None
            self._logger.error("dispatch.cancelled", url=url, response_time_ms=elapsed, transaction_id=tx)
            raise RequestCancelledError("Request cancelled by user", response_time_ms=elapsed) from None
        except DispatchError as e:
            elapsed = _elapsed_ms(started)
            self._logger.error("dispatch.failed", url=url, error=str(e), response_time_ms=elapsed)
            raise type(e)(str(e), response_time_ms=elapsed) from e
        finally:
            timer.cancel()
            if tx:
                self._registry.clear(tx, token)

        elapsed = _elapsed_ms(started)
        result = DispatchResult(
            status=response.status,
            status_text=response.reason,
            headers=dict(response.headers),
            body=decode_body(response),
            response_time_ms=elapsed,
            size=len(response.content or b""),
        )

        if response.status >= 400:
            self._logger.error(
                "dispatch.http_error",
                url=url,
                status=response.status,
                status_text=response.reason,
                response_time_ms=elapsed,
            )
        else:
            self._logger.info("dispatch.response", url=url, status=response.status, response_time_ms=elapsed)
        return result

    async def _encode_and_send(self, url: str, options: DispatchOptions) -> HttpResponse:
        payload = await self._encoder.encode(options.method, options.headers, options.body, options.is_json)
        outbound = OutboundRequest(
            method=options.method,
            url=url,
            headers=payload.headers,
            content=payload.content,
            files=payload.files,
        )
        self._logger.info(
            "dispatch.request",
            method=options.method.value,
            url=url,
            headers=mask_dict(payload.headers),
            encoding=payload.encoding,
            transaction_id=options.transaction_id,
        )
        return await self._http.send(outbound)

    async def test_connection(self, url: str, timeout_ms: Optional[int] = None) -> bool:
        options = DispatchOptions(
            method=HttpMethod.GET,
            timeout_ms=timeout_ms or self._connection_test_timeout_ms,
        )
        try:
            result = await self.send(url, options)
        except DispatchError as e:
            self._logger.error("connection_test.failed", url=url, error=str(e), kind=e.kind)
            return False
        return result.status < 500

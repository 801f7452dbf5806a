from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from application.exceptions import DispatchError
from application.ports.history_store import HistoryStorePort
from application.ports.logger import LoggerPort
from application.services.request_preparer import PreparedRequest
from domain.dispatch import TRANSPORT_FAILURE_STATUS, DispatchResult
from domain.history import HistoryEntry
from domain.request import RequestDescriptor


def _body_as_text(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body, ensure_ascii=False)


class HistoryRecorder:
    """
    送信 1 回につき HistoryEntry を 1 件書き込む。
    保存の失敗はログに残し、呼び出し側には伝えない。
    """

    def __init__(
        self,
        store: HistoryStorePort,
        logger: LoggerPort,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._store = store
        self._logger = logger
        self._clock = clock

    def record_result(
        self,
        descriptor: RequestDescriptor,
        prepared: PreparedRequest,
        result: DispatchResult,
    ) -> Optional[HistoryEntry]:
        return self._append(
            descriptor,
            prepared,
            status=result.status,
            response_time_ms=result.response_time_ms,
            response_body=_body_as_text(result.body),
            response_headers=dict(result.headers),
            error=None,
        )

    def record_failure(
        self,
        descriptor: RequestDescriptor,
        prepared: PreparedRequest,
        error: DispatchError,
    ) -> Optional[HistoryEntry]:
        message = str(error)
        return self._append(
            descriptor,
            prepared,
            status=TRANSPORT_FAILURE_STATUS,
            response_time_ms=error.response_time_ms,
            response_body=_body_as_text({"error": message}),
            response_headers={},
            error=message,
        )

    def _append(
        self,
        descriptor: RequestDescriptor,
        prepared: PreparedRequest,
        status: int,
        response_time_ms: int,
        response_body: str,
        response_headers: dict,
        error: Optional[str],
    ) -> Optional[HistoryEntry]:
        try:
            entry = HistoryEntry(
                method=prepared.method.value,
                url=prepared.url,
                status=status,
                response_time_ms=response_time_ms,
                response_body=response_body,
                request_headers=dict(prepared.headers),
                response_headers=response_headers,
                created_at=self._clock(),
                request_id=descriptor.id,
                collection_id=descriptor.collection_id,
                request_body=descriptor.body,
                query_params=tuple(descriptor.query_params),
                request_name=descriptor.name or None,
                error=error,
            )
            saved = self._store.append(entry)
        except Exception as e:
            self._logger.error("history.record_failed", url=prepared.url, error=str(e))
            return None

        self._logger.debug("history.recorded", history_id=saved.id, status=status)
        return saved

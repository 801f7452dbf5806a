# application/executor/request_executor.py
from __future__ import annotations

import time
from dataclasses import dataclass

from application.dispatch.dispatch_service import DispatchOptions, DispatchService
from application.exceptions import DispatchError
from application.outcome import SendOutcome
from application.ports.logger import LoggerPort
from application.services.history_recorder import HistoryRecorder
from application.services.request_preparer import PreparedRequest, RequestPreparer
from domain.dispatch import DispatchResult
from domain.request import RequestDescriptor
from domain.variables import VariableContext


@dataclass(frozen=True)
class ExecutionRecord:
    prepared: PreparedRequest
    result: DispatchResult


class RequestExecutor:
    """
    1 リクエスト分の resolve → encode → dispatch → 履歴記録。
    """

    def __init__(
        self,
        preparer: RequestPreparer,
        dispatcher: DispatchService,
        history: HistoryRecorder,
        logger: LoggerPort,
    ):
        self._preparer = preparer
        self._dispatcher = dispatcher
        self._history = history
        self._logger = logger

    async def execute(self, descriptor: RequestDescriptor, ctx: VariableContext) -> ExecutionRecord:
        """展開・通信の失敗は例外。HTTP エラーステータスは結果として返す。"""
        prepared = self._preparer.prepare(descriptor, ctx)
        options = DispatchOptions(
            method=prepared.method,
            headers=prepared.headers,
            body=prepared.body,
            timeout_ms=prepared.timeout_ms,
            transaction_id=prepared.transaction_id,
        )

        try:
            result = await self._dispatcher.send(prepared.url, options)
        except DispatchError as e:
            self._history.record_failure(descriptor, prepared, e)
            raise

        self._history.record_result(descriptor, prepared, result)
        return ExecutionRecord(prepared=prepared, result=result)

    async def send_request(self, descriptor: RequestDescriptor, ctx: VariableContext) -> SendOutcome:
        """単発送信。失敗は例外ではなく status 0 の SendOutcome で返す。"""
        started = time.perf_counter()
        try:
            record = await self.execute(descriptor, ctx)
        except DispatchError as e:
            return SendOutcome.from_error(e, e.response_time_ms)
        except Exception as e:
            self._logger.error("request.failed", url=descriptor.url, error=str(e))
            return SendOutcome.from_error(e, int((time.perf_counter() - started) * 1000))
        return SendOutcome.from_result(record.result)

# application/executor/collection_runner.py
from __future__ import annotations

import inspect
import time
import uuid
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from application.exceptions import DispatchError
from application.executor.request_executor import RequestExecutor
from application.ports.logger import LoggerPort
from domain.ids import EntityId, entity_sort_key
from domain.request import RequestDescriptor
from domain.run_result import CollectionRunReport, ProgressStatus, RunProgress, RunResult, RunSummary
from domain.variables import VariableContext

ProgressCallback = Callable[[RunProgress], Union[None, Awaitable[None]]]

EMPTY_RUN_MESSAGE = "No requests found in collection"


def execution_order(requests: Sequence[RequestDescriptor]) -> List[RequestDescriptor]:
    """order 昇順、同じ order は id 昇順（保存順に依存しない）"""
    return sorted(requests, key=lambda r: (r.order or 0, entity_sort_key(r.id)))


class CollectionRunner:
    """
    コレクションのリクエストを 1 件ずつ順に実行する。
    失敗した item は失敗の RunResult になり、次の item へ進む。
    """

    def __init__(self, executor: RequestExecutor, logger: LoggerPort):
        self._executor = executor
        self._logger = logger

    async def run(
        self,
        requests: Sequence[RequestDescriptor],
        ctx: VariableContext,
        on_progress: Optional[ProgressCallback] = None,
        collection_id: Optional[EntityId] = None,
        run_id: Optional[str] = None,
    ) -> CollectionRunReport:
        run_id = run_id or uuid.uuid4().hex
        logger = self._logger.bind(run_id=run_id)

        ordered = execution_order(requests)
        if not ordered:
            logger.info("run.empty", collection_id=collection_id)
            return CollectionRunReport(run_id=run_id, collection_id=collection_id, message=EMPTY_RUN_MESSAGE)

        total = len(ordered)
        logger.info("run.start", collection_id=collection_id, total=total)

        results: List[RunResult] = []
        for index, request in enumerate(ordered, start=1):
            name = request.display_name()
            logger.info("run.item.start", request_id=request.id, request_name=name, index=index)
            t0 = time.perf_counter()

            try:
                record = await self._executor.execute(request, ctx)
            except Exception as e:
                result = RunResult(
                    request_id=request.id,
                    request_name=name,
                    success=False,
                    response_time_ms=e.response_time_ms if isinstance(e, DispatchError) else None,
                    error=str(e) or type(e).__name__,
                )
                progress_status = ProgressStatus.ERROR
            else:
                result = RunResult(
                    request_id=request.id,
                    request_name=name,
                    success=True,
                    status=record.result.status,
                    response_time_ms=record.result.response_time_ms,
                )
                progress_status = ProgressStatus.COMPLETED

            results.append(result)
            logger.info(
                "run.item.end",
                request_id=request.id,
                ok=result.passed,
                status=result.status,
                error=result.error,
                elapsed_ms=int((time.perf_counter() - t0) * 1000),
            )

            await self._notify(
                on_progress,
                RunProgress(
                    current=index,
                    total=total,
                    request_name=name,
                    request_id=request.id,
                    status=progress_status,
                    error=result.error,
                ),
                logger,
            )

        summary = RunSummary.from_results(results)
        logger.info("run.end", total=summary.total, passed=summary.passed, failed=summary.failed)
        return CollectionRunReport(
            run_id=run_id,
            collection_id=collection_id,
            results=results,
            summary=summary,
        )

    async def _notify(self, on_progress: Optional[ProgressCallback], progress: RunProgress, logger: LoggerPort) -> None:
        if on_progress is None:
            return
        try:
            maybe: Any = on_progress(progress)
            if inspect.isawaitable(maybe):
                await maybe
        except Exception as e:
            # 通知の失敗で run を止めない
            logger.error("run.progress_failed", request_id=progress.request_id, error=str(e))

# application/engine.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, List, Optional

from application.dispatch.dispatch_service import DispatchService
from application.executor.collection_runner import CollectionRunner, ProgressCallback
from application.executor.request_executor import RequestExecutor
from application.outcome import SendOutcome
from application.ports.collection_store import CollectionStorePort
from application.ports.environment_store import EnvironmentStorePort
from application.ports.history_store import HistoryStorePort
from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort
from application.services.history_recorder import HistoryRecorder
from application.services.payload_encoder import PayloadEncoder
from application.services.request_preparer import RequestPreparer
from application.services.variable_context_provider import VariableContextProvider
from application.services.variable_resolver import VariableResolver
from domain.history import HistoryEntry
from domain.ids import EntityId
from domain.request import RequestDescriptor
from domain.run_result import CollectionRunReport
from domain.variables import ResolutionPreview, VariableContext


@dataclass(frozen=True)
class EngineStores:
    environments: EnvironmentStorePort
    collections: CollectionStorePort
    history: HistoryStorePort


class RequestEngine:
    """
    リクエスト実行コアの入口。
    変数展開、単発送信とキャンセル、コレクション実行、接続テスト、履歴参照をまとめる。
    """

    def __init__(
        self,
        resolver: VariableResolver,
        contexts: VariableContextProvider,
        dispatcher: DispatchService,
        executor: RequestExecutor,
        runner: CollectionRunner,
        stores: EngineStores,
        logger: LoggerPort,
    ):
        self._resolver = resolver
        self._contexts = contexts
        self._dispatcher = dispatcher
        self._executor = executor
        self._runner = runner
        self._stores = stores
        self._logger = logger

    @classmethod
    def build(
        cls,
        http_client: HttpClientPort,
        stores: EngineStores,
        logger: LoggerPort,
        default_timeout_ms: int = 30_000,
        connection_test_timeout_ms: int = 5_000,
    ) -> "RequestEngine":
        resolver = VariableResolver(logger)
        dispatcher = DispatchService(
            http_client,
            PayloadEncoder(logger),
            logger,
            default_timeout_ms=default_timeout_ms,
            connection_test_timeout_ms=connection_test_timeout_ms,
        )
        executor = RequestExecutor(
            RequestPreparer(resolver),
            dispatcher,
            HistoryRecorder(stores.history, logger),
            logger,
        )
        return cls(
            resolver=resolver,
            contexts=VariableContextProvider(stores.environments, stores.collections),
            dispatcher=dispatcher,
            executor=executor,
            runner=CollectionRunner(executor, logger),
            stores=stores,
            logger=logger,
        )

    @property
    def dispatcher(self) -> DispatchService:
        return self._dispatcher

    def resolve_text(self, text: Any, ctx: VariableContext) -> Any:
        return self._resolver.resolve(text, ctx)

    def resolve_object(self, value: Any, ctx: VariableContext) -> Any:
        return self._resolver.resolve_object(value, ctx)

    def preview_resolution(self, text: Any, ctx: VariableContext) -> ResolutionPreview:
        return self._resolver.preview_resolution(text, ctx)

    def context_for(
        self,
        collection_id: Optional[EntityId] = None,
        environment_id: Optional[EntityId] = None,
    ) -> VariableContext:
        return self._contexts.for_request(collection_id, environment_id)

    async def send_request(
        self,
        descriptor: RequestDescriptor,
        environment_id: Optional[EntityId] = None,
    ) -> SendOutcome:
        started = time.perf_counter()
        try:
            ctx = self._contexts.for_request(descriptor.collection_id, environment_id)
        except Exception as e:
            self._logger.error("request.context_failed", url=descriptor.url, error=str(e))
            return SendOutcome.from_error(e, int((time.perf_counter() - started) * 1000))
        return await self._executor.send_request(descriptor, ctx)

    def cancel_request(self, transaction_id: str) -> bool:
        return self._dispatcher.cancel(transaction_id)

    async def run_collection(
        self,
        collection_id: EntityId,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CollectionRunReport:
        collection = self._contexts.collection(collection_id)
        ctx = self._contexts.for_collection(collection)
        requests = self._stores.collections.list_requests(collection_id)
        return await self._runner.run(requests, ctx, on_progress=on_progress, collection_id=collection_id)

    async def test_connection(self, url: str, timeout_ms: Optional[int] = None) -> bool:
        return await self._dispatcher.test_connection(url, timeout_ms)

    def list_history(self, limit: int = 100) -> List[HistoryEntry]:
        return self._stores.history.list_recent(limit)

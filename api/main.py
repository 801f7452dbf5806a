"""FastAPI アプリケーション - request engine の REST ファサード"""
from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

# プロジェクトルートをPythonパスに追加
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from application.engine import EngineStores, RequestEngine
from application.outcome import SendOutcome
from domain.environment import Collection, CollectionEnvironment, Environment
from domain.exceptions import EntityNotFoundError, ValidationError
from domain.http_method import HttpMethod
from domain.request import AuthSpec, AuthType, FormField, FormFieldKind, QueryParam, RequestDescriptor
from domain.run_result import RunProgress
from infrastructure.config.settings import EngineSettings
from infrastructure.http.httpx_client import HttpxAsyncClient
from infrastructure.logging.composite_logger import CompositeLogger
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger
from infrastructure.store.in_memory_collection_store import InMemoryCollectionStore
from infrastructure.store.in_memory_environment_store import InMemoryEnvironmentStore
from infrastructure.store.in_memory_history_store import InMemoryHistoryStore

EntityIdModel = Union[int, str]


# リクエストモデル
class QueryParamModel(BaseModel):
    key: str
    value: str = ""
    enabled: bool = True


class FormFieldModel(BaseModel):
    key: str
    value: str = ""
    enabled: bool = True
    type: Literal["text", "file"] = "text"


class AuthModel(BaseModel):
    type: Literal["none", "bearer", "basic", "apikey"] = "none"
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_key_header: Optional[str] = Field(default=None, alias="apiKeyHeader")

    model_config = {"populate_by_name": True}


class RequestModel(BaseModel):
    """保存済み / アドホックのリクエスト記述"""
    method: str = "GET"
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Union[str, List[FormFieldModel], Dict[str, Any]]] = None
    auth: AuthModel = Field(default_factory=AuthModel)
    query_params: List[QueryParamModel] = Field(default_factory=list, alias="queryParams")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs", gt=0)
    id: Optional[EntityIdModel] = None
    name: str = ""
    collection_id: Optional[EntityIdModel] = Field(default=None, alias="collectionId")
    order: Optional[int] = None

    model_config = {"populate_by_name": True}


class SendRequestBody(RequestModel):
    environment_id: Optional[EntityIdModel] = Field(default=None, alias="environmentId")


class EnvironmentModel(BaseModel):
    id: EntityIdModel
    name: str
    variables: Dict[str, str] = Field(default_factory=dict)
    is_default: bool = Field(default=False, alias="isDefault")

    model_config = {"populate_by_name": True}


class CollectionEnvironmentModel(BaseModel):
    id: EntityIdModel
    name: str
    variables: Dict[str, str] = Field(default_factory=dict)


class CollectionModel(BaseModel):
    id: EntityIdModel
    name: str
    environments: List[CollectionEnvironmentModel] = Field(default_factory=list)
    active_environment_id: Optional[EntityIdModel] = Field(default=None, alias="activeEnvironmentId")

    model_config = {"populate_by_name": True}


class PreviewRequest(BaseModel):
    text: str
    collection_id: Optional[EntityIdModel] = Field(default=None, alias="collectionId")
    environment_id: Optional[EntityIdModel] = Field(default=None, alias="environmentId")

    model_config = {"populate_by_name": True}


class ConnectionTestRequest(BaseModel):
    url: str
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs", gt=0)

    model_config = {"populate_by_name": True}


# レスポンスモデル
class SendResponse(BaseModel):
    success: bool
    status: int
    status_text: str = Field(serialization_alias="statusText")
    data: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)
    response_time: int = Field(serialization_alias="responseTime")
    error: Optional[str] = None
    error_kind: Optional[str] = Field(default=None, serialization_alias="errorKind")


class CancelResponse(BaseModel):
    success: bool


class RunResultResponse(BaseModel):
    request_id: Optional[EntityIdModel] = Field(serialization_alias="requestId")
    request_name: str = Field(serialization_alias="requestName")
    success: bool
    status: Optional[int] = None
    response_time: Optional[int] = Field(default=None, serialization_alias="responseTime")
    error: Optional[str] = None


class RunSummaryResponse(BaseModel):
    total: int
    passed: int
    failed: int


class RunCollectionResponse(BaseModel):
    success: bool
    run_id: Optional[str] = Field(default=None, serialization_alias="runId")
    results: List[RunResultResponse] = Field(default_factory=list)
    summary: Optional[RunSummaryResponse] = None
    message: Optional[str] = None
    error: Optional[str] = None


class PreviewResponse(BaseModel):
    resolved: str
    unresolved: List[str]


class ConnectionTestResponse(BaseModel):
    reachable: bool


class HistoryEntryResponse(BaseModel):
    id: Optional[int]
    method: str
    url: str
    status: int
    response_time: int = Field(serialization_alias="responseTime")
    response_body: str
    headers: Dict[str, str]
    created_at: datetime = Field(serialization_alias="createdAt")
    request_id: Optional[EntityIdModel] = Field(default=None, serialization_alias="requestId")
    collection_id: Optional[EntityIdModel] = Field(default=None, serialization_alias="collectionId")
    request_name: Optional[str] = Field(default=None, serialization_alias="requestName")
    error: Optional[str] = None


# 設定・依存
SETTINGS = EngineSettings.from_env()
ENVIRONMENT_STORE = InMemoryEnvironmentStore()
COLLECTION_STORE = InMemoryCollectionStore()
HISTORY_STORE = InMemoryHistoryStore(max_entries=SETTINGS.history_max_entries)
HTTP_CLIENT = HttpxAsyncClient()


def _build_logger(settings: EngineSettings) -> CompositeLogger:
    setup_console_logging(settings.log_level)
    loggers = [LoguruLogger()]
    if settings.console_json_logs:
        loggers.append(ConsoleLogger(min_level=settings.log_level))
    return CompositeLogger(loggers)


LOGGER = _build_logger(SETTINGS)
ENGINE = RequestEngine.build(
    HTTP_CLIENT,
    EngineStores(
        environments=ENVIRONMENT_STORE,
        collections=COLLECTION_STORE,
        history=HISTORY_STORE,
    ),
    LOGGER,
    default_timeout_ms=SETTINGS.default_timeout_ms,
    connection_test_timeout_ms=SETTINGS.connection_test_timeout_ms,
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await HTTP_CLIENT.aclose()


# FastAPIアプリケーション
app = FastAPI(
    title="Reqflow Request Engine",
    description="テンプレート化されたリクエストの解決・送信・コレクション実行",
    version="1.0.0",
    lifespan=lifespan,
)


def to_descriptor(model: RequestModel) -> RequestDescriptor:
    body: Any = model.body
    if isinstance(body, list):
        body = tuple(
            FormField(key=f.key, value=f.value, enabled=f.enabled, kind=FormFieldKind(f.type)) for f in body
        )
    return RequestDescriptor(
        method=HttpMethod.parse(model.method),
        url=model.url,
        headers=dict(model.headers),
        body=body,
        auth=AuthSpec(
            type=AuthType(model.auth.type),
            token=model.auth.token,
            username=model.auth.username,
            password=model.auth.password,
            api_key=model.auth.api_key,
            api_key_header=model.auth.api_key_header,
        ),
        query_params=tuple(QueryParam(key=p.key, value=p.value, enabled=p.enabled) for p in model.query_params),
        transaction_id=model.transaction_id,
        timeout_ms=model.timeout_ms,
        id=model.id,
        name=model.name,
        collection_id=model.collection_id,
        order=model.order,
    )


def _send_response(outcome: SendOutcome) -> SendResponse:
    return SendResponse(
        success=outcome.success,
        status=outcome.status,
        status_text=outcome.status_text,
        data=outcome.data,
        headers=outcome.headers,
        response_time=outcome.response_time_ms,
        error=outcome.error,
        error_kind=outcome.error_kind,
    )


@app.get("/")
def read_root():
    """ヘルスチェック"""
    return {"status": "ok", "service": "reqflow"}


@app.post("/environments", status_code=201)
def save_environment(env: EnvironmentModel) -> Dict[str, Any]:
    ENVIRONMENT_STORE.save(
        Environment(id=env.id, name=env.name, variables=dict(env.variables), is_default=env.is_default)
    )
    return {"success": True, "id": env.id}


@app.post("/collections", status_code=201)
def save_collection(collection: CollectionModel) -> Dict[str, Any]:
    COLLECTION_STORE.save(
        Collection(
            id=collection.id,
            name=collection.name,
            environments=tuple(
                CollectionEnvironment(id=e.id, name=e.name, variables=dict(e.variables))
                for e in collection.environments
            ),
            active_environment_id=collection.active_environment_id,
        )
    )
    return {"success": True, "id": collection.id}


@app.post("/collections/{collection_id}/requests", status_code=201)
def save_request(collection_id: str, request: RequestModel) -> Dict[str, Any]:
    model = request.model_copy(update={"collection_id": _coerce_id(collection_id)})
    try:
        COLLECTION_STORE.save_request(to_descriptor(model))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "id": model.id}


@app.post("/requests/send", response_model=SendResponse, response_model_by_alias=True)
async def send_request(body: SendRequestBody) -> SendResponse:
    try:
        descriptor = to_descriptor(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    outcome = await ENGINE.send_request(descriptor, environment_id=body.environment_id)
    return _send_response(outcome)


@app.post("/requests/{transaction_id}/cancel", response_model=CancelResponse)
def cancel_request(transaction_id: str) -> CancelResponse:
    return CancelResponse(success=ENGINE.cancel_request(transaction_id))


@app.post("/collections/{collection_id}/runs", response_model=RunCollectionResponse, response_model_by_alias=True)
async def run_collection(collection_id: str) -> RunCollectionResponse:
    def on_progress(progress: RunProgress) -> None:
        LOGGER.info(
            "run.progress",
            current=progress.current,
            total=progress.total,
            request_id=progress.request_id,
            request_name=progress.request_name,
            status=progress.status.value,
            error=progress.error,
        )

    try:
        report = await ENGINE.run_collection(_coerce_id(collection_id), on_progress=on_progress)
    except EntityNotFoundError as e:
        return RunCollectionResponse(success=False, error=str(e))

    return RunCollectionResponse(
        success=True,
        run_id=report.run_id,
        results=[
            RunResultResponse(
                request_id=r.request_id,
                request_name=r.request_name,
                success=r.success,
                status=r.status,
                response_time=r.response_time_ms,
                error=r.error,
            )
            for r in report.results
        ],
        summary=RunSummaryResponse(
            total=report.summary.total,
            passed=report.summary.passed,
            failed=report.summary.failed,
        ),
        message=report.message,
    )


@app.post("/variables/preview", response_model=PreviewResponse)
def preview_variables(request: PreviewRequest) -> PreviewResponse:
    try:
        ctx = ENGINE.context_for(request.collection_id, request.environment_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    preview = ENGINE.preview_resolution(request.text, ctx)
    return PreviewResponse(resolved=preview.resolved, unresolved=preview.unresolved)


@app.post("/connection/test", response_model=ConnectionTestResponse)
async def test_connection(request: ConnectionTestRequest) -> ConnectionTestResponse:
    return ConnectionTestResponse(reachable=await ENGINE.test_connection(request.url, request.timeout_ms))


@app.get("/history", response_model=List[HistoryEntryResponse], response_model_by_alias=True)
def list_history(limit: int = Query(default=100, ge=1, le=1000)) -> List[HistoryEntryResponse]:
    return [
        HistoryEntryResponse(
            id=e.id,
            method=e.method,
            url=e.url,
            status=e.status,
            response_time=e.response_time_ms,
            response_body=e.response_body,
            headers=e.request_headers,
            created_at=e.created_at,
            request_id=e.request_id,
            collection_id=e.collection_id,
            request_name=e.request_name,
            error=e.error,
        )
        for e in ENGINE.list_history(limit)
    ]


def _coerce_id(raw: str) -> Union[int, str]:
    # パスパラメータは文字列で来るので数値 id を復元する
    return int(raw) if raw.isdigit() else raw

from __future__ import annotations

import asyncio

import pytest

from application.dispatch.dispatch_service import DispatchService
from application.exceptions import TransportError
from application.executor.request_executor import RequestExecutor
from application.services.history_recorder import HistoryRecorder
from application.services.payload_encoder import PayloadEncoder
from application.services.request_preparer import RequestPreparer
from application.services.variable_resolver import VariableResolver
from domain.http_method import HttpMethod
from domain.request import RequestDescriptor
from domain.variables import VariableContext
from infrastructure.store.in_memory_history_store import InMemoryHistoryStore
from mock_http_client import MockHttpClient, make_response

CTX = VariableContext(global_variables={"host": "https://api.test"})


def _executor(client, logger, history=None) -> RequestExecutor:
    history = history or InMemoryHistoryStore()
    return RequestExecutor(
        RequestPreparer(VariableResolver(logger)),
        DispatchService(client, PayloadEncoder(logger), logger),
        HistoryRecorder(history, logger),
        logger,
    )


def test_execute_resolves_dispatches_and_records(logger) -> None:
    # Arrange
    client = MockHttpClient(make_response(200, {"ok": True}))
    history = InMemoryHistoryStore()
    descriptor = RequestDescriptor(method=HttpMethod.GET, url="{{host}}/health")

    # Act
    record = asyncio.run(_executor(client, logger, history).execute(descriptor, CTX))

    # Assert
    assert client.requests[0].url == "https://api.test/health"
    assert record.prepared.url == "https://api.test/health"
    assert record.result.status == 200
    entries = history.list_recent()
    assert [(e.url, e.status) for e in entries] == [("https://api.test/health", 200)]


def test_execute_records_failure_then_raises(logger) -> None:
    client = MockHttpClient(error=TransportError("Connection error: refused"))
    history = InMemoryHistoryStore()
    descriptor = RequestDescriptor(method=HttpMethod.GET, url="{{host}}/health")

    with pytest.raises(TransportError):
        asyncio.run(_executor(client, logger, history).execute(descriptor, CTX))

    (entry,) = history.list_recent()
    assert entry.status == 0
    assert entry.error == "Connection error: refused"


def test_send_request_returns_outcome_for_http_error(logger) -> None:
    client = MockHttpClient(make_response(500, {"error": "boom"}))

    outcome = asyncio.run(
        _executor(client, logger).send_request(RequestDescriptor(method=HttpMethod.GET, url="{{host}}"), CTX)
    )

    assert outcome.success is True
    assert outcome.status == 500
    assert outcome.status_text == "Internal Server Error"
    assert outcome.data == {"error": "boom"}
    assert outcome.error is None


def test_send_request_converts_transport_failure(logger) -> None:
    client = MockHttpClient(error=TransportError("Connection error: refused"))

    outcome = asyncio.run(
        _executor(client, logger).send_request(RequestDescriptor(method=HttpMethod.GET, url="{{host}}"), CTX)
    )

    assert outcome.success is False
    assert outcome.status == 0
    assert outcome.status_text == "Connection error: refused"
    assert outcome.data == {"error": "Connection error: refused"}
    assert outcome.error_kind == "transport"

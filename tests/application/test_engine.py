from __future__ import annotations

import asyncio

import pytest

from application.engine import EngineStores, RequestEngine
from domain.environment import Collection, CollectionEnvironment, Environment
from domain.exceptions import EntityNotFoundError
from domain.http_method import HttpMethod
from domain.request import RequestDescriptor
from infrastructure.store.in_memory_collection_store import InMemoryCollectionStore
from infrastructure.store.in_memory_environment_store import InMemoryEnvironmentStore
from infrastructure.store.in_memory_history_store import InMemoryHistoryStore
from mock_http_client import MockHttpClient, make_response


def _engine(logger, client=None, environments=None):
    stores = EngineStores(
        environments=InMemoryEnvironmentStore(environments),
        collections=InMemoryCollectionStore(),
        history=InMemoryHistoryStore(),
    )
    client = client or MockHttpClient(make_response(200, {"ok": True}))
    return RequestEngine.build(client, stores, logger), stores, client


def _global_env() -> Environment:
    return Environment(id=1, name="global", variables={"host": "https://api.test", "token": "t0"}, is_default=True)


def test_send_request_without_environment_fails_softly(logger) -> None:
    engine, stores, client = _engine(logger)

    outcome = asyncio.run(engine.send_request(RequestDescriptor(method=HttpMethod.GET, url="https://x.test")))

    assert outcome.success is False
    assert outcome.status == 0
    assert outcome.error == "No environment selected"
    assert client.requests == []
    assert stores.history.list_recent() == []


def test_send_request_resolves_with_collection_scope(logger) -> None:
    # Arrange
    engine, stores, client = _engine(logger, environments=[_global_env()])
    stores.collections.save(
        Collection(
            id=5,
            name="users",
            environments=(CollectionEnvironment(id=1, name="dev", variables={"token": "coll-token"}),),
        )
    )
    descriptor = RequestDescriptor(
        method=HttpMethod.GET,
        url="{{host}}/me",
        headers={"X-Token": "{{token}}"},
        collection_id=5,
    )

    # Act
    outcome = asyncio.run(engine.send_request(descriptor))

    # Assert
    assert outcome.success is True
    assert client.requests[0].url == "https://api.test/me"
    assert client.requests[0].headers == {"X-Token": "coll-token"}
    assert [e.url for e in engine.list_history()] == ["https://api.test/me"]


def test_run_collection_end_to_end(logger) -> None:
    engine, stores, client = _engine(logger, environments=[_global_env()])
    stores.collections.save(Collection(id=1, name="smoke"))
    stores.collections.save_request(
        RequestDescriptor(method=HttpMethod.GET, url="{{host}}/b", id=2, collection_id=1, order=2)
    )
    stores.collections.save_request(
        RequestDescriptor(method=HttpMethod.GET, url="{{host}}/a", id=1, collection_id=1, order=1)
    )
    progress = []

    report = asyncio.run(engine.run_collection(1, on_progress=progress.append))

    assert [r.url for r in client.requests] == ["https://api.test/a", "https://api.test/b"]
    assert report.summary.passed == 2
    assert len(progress) == 2
    assert len(engine.list_history()) == 2


def test_run_unknown_collection_raises(logger) -> None:
    engine, _, _ = _engine(logger, environments=[_global_env()])

    with pytest.raises(EntityNotFoundError, match="Collection not found"):
        asyncio.run(engine.run_collection(404))


def test_preview_and_cancel_helpers(logger) -> None:
    engine, _, _ = _engine(logger, environments=[_global_env()])

    preview = engine.preview_resolution("{{host}}/{{nope}}", engine.context_for())

    assert preview.resolved == "https://api.test/"
    assert preview.unresolved == ["nope"]
    assert engine.cancel_request("not-running") is False


def test_test_connection(logger) -> None:
    engine, _, _ = _engine(logger, client=MockHttpClient(make_response(503, {})))

    assert asyncio.run(engine.test_connection("https://api.test")) is False

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from domain.environment import Collection
from domain.exceptions import EntityNotFoundError, ValidationError
from domain.history import HistoryEntry
from domain.http_method import HttpMethod
from domain.request import RequestDescriptor
from infrastructure.store.in_memory_collection_store import InMemoryCollectionStore
from infrastructure.store.in_memory_history_store import InMemoryHistoryStore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entry(url: str, minutes: int = 0) -> HistoryEntry:
    return HistoryEntry(
        method="GET",
        url=url,
        status=200,
        response_time_ms=5,
        response_body="",
        request_headers={},
        response_headers={},
        created_at=T0 + timedelta(minutes=minutes),
    )


def test_history_assigns_ids_and_lists_newest_first() -> None:
    store = InMemoryHistoryStore()

    first = store.append(_entry("/a", minutes=0))
    second = store.append(_entry("/b", minutes=1))

    assert (first.id, second.id) == (1, 2)
    assert [e.url for e in store.list_recent()] == ["/b", "/a"]
    assert [e.url for e in store.list_recent(limit=1)] == ["/b"]


def test_history_same_timestamp_orders_by_id() -> None:
    store = InMemoryHistoryStore()
    store.append(_entry("/a"))
    store.append(_entry("/b"))

    assert [e.url for e in store.list_recent()] == ["/b", "/a"]


def test_history_drops_oldest_beyond_capacity() -> None:
    store = InMemoryHistoryStore(max_entries=2)
    for i, url in enumerate(["/a", "/b", "/c"]):
        store.append(_entry(url, minutes=i))

    assert [e.id for e in store.list_recent()] == [3, 2]


def test_save_request_requires_known_collection() -> None:
    store = InMemoryCollectionStore()

    with pytest.raises(ValidationError):
        store.save_request(RequestDescriptor(method=HttpMethod.GET, url="u"))
    with pytest.raises(EntityNotFoundError):
        store.save_request(RequestDescriptor(method=HttpMethod.GET, url="u", collection_id=9))


def test_save_request_replaces_same_id_in_place() -> None:
    store = InMemoryCollectionStore()
    store.save(Collection(id=1, name="c"))
    store.save_request(RequestDescriptor(method=HttpMethod.GET, url="/a", id=1, collection_id=1))
    store.save_request(RequestDescriptor(method=HttpMethod.GET, url="/b", id=2, collection_id=1))

    store.save_request(RequestDescriptor(method=HttpMethod.POST, url="/a2", id=1, collection_id=1))

    assert [(r.id, r.url) for r in store.list_requests(1)] == [(1, "/a2"), (2, "/b")]
    assert store.list_requests(404) == []

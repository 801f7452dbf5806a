from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional

from application.ports.collection_store import CollectionStorePort
from domain.environment import Collection
from domain.exceptions import EntityNotFoundError, ValidationError
from domain.ids import EntityId
from domain.request import RequestDescriptor


class InMemoryCollectionStore(CollectionStorePort):
    def __init__(self) -> None:
        self._collections: Dict[EntityId, Collection] = {}
        self._requests: Dict[EntityId, List[RequestDescriptor]] = {}
        self._lock = Lock()

    def save(self, collection: Collection) -> None:
        with self._lock:
            self._collections[collection.id] = collection
            self._requests.setdefault(collection.id, [])

    def save_request(self, request: RequestDescriptor) -> None:
        if request.collection_id is None:
            raise ValidationError("Saved request must belong to a collection")
        with self._lock:
            if request.collection_id not in self._collections:
                raise EntityNotFoundError(f"Collection not found: {request.collection_id}")
            bucket = self._requests[request.collection_id]
            # 同じ id は上書き（位置は維持）
            for i, existing in enumerate(bucket):
                if request.id is not None and existing.id == request.id:
                    bucket[i] = request
                    return
            bucket.append(request)

    def get(self, collection_id: EntityId) -> Optional[Collection]:
        with self._lock:
            return self._collections.get(collection_id)

    def list_requests(self, collection_id: EntityId) -> List[RequestDescriptor]:
        with self._lock:
            return list(self._requests.get(collection_id, []))

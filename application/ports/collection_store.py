from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from domain.environment import Collection
from domain.ids import EntityId
from domain.request import RequestDescriptor


class CollectionStorePort(ABC):
    @abstractmethod
    def get(self, collection_id: EntityId) -> Optional[Collection]:
        ...

    @abstractmethod
    def list_requests(self, collection_id: EntityId) -> List[RequestDescriptor]:
        """Every saved request of the collection (folders included), in storage order."""
        ...

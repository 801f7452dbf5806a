from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from domain.environment import Environment
from domain.ids import EntityId


class EnvironmentStorePort(ABC):
    @abstractmethod
    def get(self, environment_id: EntityId) -> Optional[Environment]:
        ...

    @abstractmethod
    def list(self) -> List[Environment]:
        ...

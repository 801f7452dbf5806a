from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional

from application.ports.environment_store import EnvironmentStorePort
from domain.environment import Environment
from domain.ids import EntityId


class InMemoryEnvironmentStore(EnvironmentStorePort):
    def __init__(self, environments: Optional[List[Environment]] = None) -> None:
        self._envs: Dict[EntityId, Environment] = {}
        self._lock = Lock()
        for env in environments or []:
            self.save(env)

    def save(self, environment: Environment) -> None:
        with self._lock:
            self._envs[environment.id] = environment

    def get(self, environment_id: EntityId) -> Optional[Environment]:
        with self._lock:
            return self._envs.get(environment_id)

    def list(self) -> List[Environment]:
        with self._lock:
            return list(self._envs.values())

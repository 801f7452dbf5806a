from __future__ import annotations

from typing import Dict, Optional

from application.ports.collection_store import CollectionStorePort
from application.ports.environment_store import EnvironmentStorePort
from domain.environment import Collection, Environment
from domain.exceptions import EntityNotFoundError
from domain.ids import EntityId
from domain.variables import VariableContext


class VariableContextProvider:
    """
    保存済みの環境から 2 スコープの VariableContext を組み立てる。

    - global: 指定 id → default 環境 → 先頭の環境
    - collection: コレクションの active 環境 → 先頭の環境
    """

    def __init__(self, environments: EnvironmentStorePort, collections: CollectionStorePort):
        self._environments = environments
        self._collections = collections

    def global_environment(self, environment_id: Optional[EntityId] = None) -> Environment:
        env: Optional[Environment] = None
        if environment_id is not None:
            env = self._environments.get(environment_id)
        if env is None:
            all_envs = self._environments.list()
            env = next((e for e in all_envs if e.is_default), None) or (all_envs[0] if all_envs else None)
        if env is None:
            raise EntityNotFoundError("No environment selected")
        return env

    def collection(self, collection_id: EntityId) -> Collection:
        collection = self._collections.get(collection_id)
        if collection is None:
            raise EntityNotFoundError("Collection not found")
        return collection

    def for_request(
        self,
        collection_id: Optional[EntityId] = None,
        environment_id: Optional[EntityId] = None,
    ) -> VariableContext:
        global_env = self.global_environment(environment_id)
        collection_vars: Dict[str, str] = {}
        if collection_id is not None:
            # 保存済みリクエストのコレクションが消えていても送信は続ける
            collection = self._collections.get(collection_id)
            if collection is not None:
                collection_vars = self._collection_variables(collection)
        return VariableContext(
            global_variables=dict(global_env.variables),
            collection_variables=collection_vars,
        )

    def for_collection(self, collection: Collection) -> VariableContext:
        global_env = self.global_environment()
        return VariableContext(
            global_variables=dict(global_env.variables),
            collection_variables=self._collection_variables(collection),
        )

    def _collection_variables(self, collection: Collection) -> Dict[str, str]:
        active = collection.active_environment()
        return dict(active.variables) if active else {}

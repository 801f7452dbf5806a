from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from domain.ids import EntityId


@dataclass(frozen=True)
class Environment:
    id: EntityId
    name: str
    variables: Dict[str, str] = field(default_factory=dict)
    is_default: bool = False


@dataclass(frozen=True)
class CollectionEnvironment:
    id: EntityId
    name: str
    variables: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Collection:
    id: EntityId
    name: str
    environments: Tuple[CollectionEnvironment, ...] = ()
    active_environment_id: Optional[EntityId] = None

    def active_environment(self) -> Optional[CollectionEnvironment]:
        """
        active な環境。id 未設定や削除済みの環境を指す場合は先頭の環境。
        """
        if not self.environments:
            return None
        if self.active_environment_id is not None:
            for env in self.environments:
                if env.id == self.active_environment_id:
                    return env
        return self.environments[0]

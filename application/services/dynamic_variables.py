from __future__ import annotations

import random
import string
import time
import uuid
from typing import Callable, Optional

RANDOM_INT_UPPER = 1_000_000
EMAIL_DOMAIN = "example.com"

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


class DynamicVariables:
    """
    {{$name}} プレースホルダ用の自動生成値。
    未知の名前は None を返し、resolver は通常のスコープ探索にフォールバックする。
    """

    NAMES = ("timestamp", "randomInt", "guid", "uuid", "randomEmail")

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._clock = clock
        self._rng = rng or random.Random()

    def resolve(self, name: str) -> Optional[str]:
        if name == "timestamp":
            return str(int(self._clock()))
        if name == "randomInt":
            return str(self._rng.randrange(RANDOM_INT_UPPER))
        if name in ("guid", "uuid"):
            return str(uuid.UUID(int=self._rng.getrandbits(128), version=4))
        if name == "randomEmail":
            token = "".join(self._rng.choice(_TOKEN_ALPHABET) for _ in range(12))
            return f"{token}@{EMAIL_DOMAIN}"
        return None

# infrastructure/logging/console_logger.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict

from application.ports.logger import LoggerPort

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}


@dataclass(frozen=True)
class ConsoleLogger(LoggerPort):
    """
    1 イベントにつき "<event> <json>" を 1 行 stdout に出す。
    min_level（REQFLOW_LOG_LEVEL）未満のイベントは捨てる。
    """

    bound: Dict[str, Any] = field(default_factory=dict)
    min_level: str = "debug"

    def bind(self, **fields: Any) -> "ConsoleLogger":
        return ConsoleLogger(bound={**self.bound, **fields}, min_level=self.min_level)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        if LEVELS[level] < LEVELS.get(self.min_level.lower(), 10):
            return
        payload = {**self.bound, **fields}
        payload.setdefault("type", event)
        payload.setdefault("level", level)
        print(f"{event} {json.dumps(payload, ensure_ascii=False, default=str)}")

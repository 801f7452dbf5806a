from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from application.ports.logger import LoggerPort


@dataclass(frozen=True, init=False)
class CompositeLogger(LoggerPort):
    """各イベントを登録順にすべての sink（loguru, console JSON など）へ送る。"""

    loggers: Tuple[LoggerPort, ...]

    def __init__(self, loggers: Iterable[LoggerPort]) -> None:
        object.__setattr__(self, "loggers", tuple(loggers))

    def bind(self, **fields: Any) -> "CompositeLogger":
        return CompositeLogger(sink.bind(**fields) for sink in self.loggers)

    def debug(self, event: str, **fields: Any) -> None:
        self._fan_out("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._fan_out("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._fan_out("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._fan_out("error", event, fields)

    def _fan_out(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        for sink in self.loggers:
            getattr(sink, level)(event, **fields)

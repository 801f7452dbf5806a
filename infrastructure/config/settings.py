# infrastructure/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from domain.exceptions import ValidationError

ENV_PREFIX = "REQFLOW_"
_DEFAULT_ENV_PATH = Path(__file__).parent.parent.parent / ".env"


def _load_env(env_path: Optional[Path]) -> Dict[str, str]:
    # load_dotenv と同じく、既存の環境変数が .env より優先
    path = env_path or _DEFAULT_ENV_PATH
    values: Dict[str, str] = {}
    if path.exists():
        values = {k: v for k, v in dotenv_values(path).items() if v is not None}
    values.update(os.environ)
    return values


def _int_setting(values: Mapping[str, str], name: str, default: int) -> int:
    raw = values.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        parsed = int(raw)
    except ValueError:
        raise ValidationError(f"{ENV_PREFIX}{name} must be an integer, got: {raw!r}") from None
    if parsed <= 0:
        raise ValidationError(f"{ENV_PREFIX}{name} must be positive, got: {parsed}")
    return parsed


def _bool_setting(values: Mapping[str, str], name: str, default: bool) -> bool:
    raw = values.get(ENV_PREFIX + name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EngineSettings:
    default_timeout_ms: int = 30_000
    connection_test_timeout_ms: int = 5_000
    history_max_entries: int = 1000
    log_level: str = "INFO"
    console_json_logs: bool = False

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "EngineSettings":
        values = _load_env(env_path)
        return cls(
            default_timeout_ms=_int_setting(values, "DEFAULT_TIMEOUT_MS", cls.default_timeout_ms),
            connection_test_timeout_ms=_int_setting(
                values, "CONNECTION_TEST_TIMEOUT_MS", cls.connection_test_timeout_ms
            ),
            history_max_entries=_int_setting(values, "HISTORY_MAX_ENTRIES", cls.history_max_entries),
            log_level=(values.get(ENV_PREFIX + "LOG_LEVEL") or cls.log_level).upper(),
            console_json_logs=_bool_setting(values, "CONSOLE_JSON_LOGS", cls.console_json_logs),
        )

from __future__ import annotations


class DispatchError(Exception):
    """1 回の送信の通信レベルの失敗。HTTP エラーステータスでは送出しない。"""

    kind = "transport"

    def __init__(self, message: str, response_time_ms: int = 0) -> None:
        super().__init__(message)
        self.response_time_ms = response_time_ms


class TransportError(DispatchError):
    kind = "transport"


class DispatchTimeoutError(DispatchError, TimeoutError):
    kind = "timeout"


class RequestCancelledError(DispatchError):
    kind = "cancelled"

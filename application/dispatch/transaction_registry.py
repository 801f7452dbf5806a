from __future__ import annotations

import asyncio
from enum import Enum
from threading import Lock
from typing import Dict, Optional


class AbortReason(str, Enum):
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class CancellationToken:
    """
    送信中の 1 リクエストを中断するハンドル。
    タイムアウトも手動キャンセルも abort() を通り、最初の理由が採用される。
    """

    def __init__(self) -> None:
        self._task: Optional[asyncio.Future] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._reason: Optional[AbortReason] = None

    @property
    def reason(self) -> Optional[AbortReason]:
        return self._reason

    def attach(self, task: asyncio.Future) -> None:
        self._task = task
        self._loop = task.get_loop()

    def abort(self, reason: AbortReason) -> bool:
        task = self._task
        if task is None or task.done() or self._reason is not None:
            return False
        self._reason = reason
        if self._is_owner_thread():
            task.cancel()
        else:
            self._loop.call_soon_threadsafe(task.cancel)
        return True

    def _is_owner_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False


class TransactionRegistry:
    """
    transaction_id → CancellationToken。
    エントリは cancel_by_id() か完了時の clear() のどちらかで一度だけ削除される。
    """

    def __init__(self) -> None:
        self._tokens: Dict[str, CancellationToken] = {}
        self._lock = Lock()

    def register(self, transaction_id: str, token: CancellationToken) -> None:
        with self._lock:
            self._tokens[transaction_id] = token

    def cancel_by_id(self, transaction_id: str) -> bool:
        with self._lock:
            token = self._tokens.pop(transaction_id, None)
        if token is None:
            return False
        return token.abort(AbortReason.CANCELLED)

    def clear(self, transaction_id: str, token: CancellationToken) -> None:
        with self._lock:
            # 同じ id で後から登録された別リクエストは消さない
            if self._tokens.get(transaction_id) is token:
                del self._tokens[transaction_id]

    def __contains__(self, transaction_id: object) -> bool:
        with self._lock:
            return transaction_id in self._tokens

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import replace
from typing import Iterable, List, Optional

from domain.models import Account
from domain.repositories import AccountRepository


logger = logging.getLogger(__name__)

_STOP = object()


class QueuedAccountRepository(AccountRepository):
    """
    Throttles balance writes through a bounded in-memory queue.

    `save_account` / `save_accounts` enqueue the write and return; a single
    worker thread applies them to `inner` in order. When the queue is full
    the caller blocks until the worker catches up.

    Reads, inserts and deletes first wait for the queue to drain so callers
    always observe their own earlier writes. A write that keeps failing is
    retried `max_retries` times and then dropped with an error log.
    Pending writes live only in memory and are lost if the process dies.
    """

    def __init__(
        self,
        inner: AccountRepository,
        maxsize: int = 100,
        max_retries: int = 3,
        retry_delay: float = 0.05,
    ) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be greater than zero")

        self._inner = inner
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = False
        self._worker = threading.Thread(
            target=self._drain,
            name="account-write-queue",
            daemon=True,
        )
        self._worker.start()

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._apply(item)
            finally:
                self._queue.task_done()

    def _apply(self, accounts: List[Account]) -> None:
        attempt = 0
        while True:
            try:
                self._inner.save_accounts(accounts)
                return
            except Exception:
                attempt += 1
                if attempt > self._max_retries:
                    logger.exception(
                        "Dropping account write after retries",
                        extra={
                            "keys": [a.key for a in accounts],
                            "attempts": attempt,
                        },
                    )
                    return
                logger.warning(
                    "Account write failed, retrying",
                    extra={"keys": [a.key for a in accounts], "attempt": attempt},
                )
                time.sleep(self._retry_delay * attempt)

    def _enqueue(self, accounts: List[Account]) -> None:
        if self._closed:
            raise RuntimeError("write queue is closed")
        # Snapshot so later mutation by the caller cannot change a queued write.
        self._queue.put([replace(a) for a in accounts])

    def flush(self) -> None:
        """Block until every queued write has been applied (or dropped)."""

        self._queue.join()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._worker.join()

    def get_account(self, user_id: str, platform: str) -> Optional[Account]:
        self.flush()
        return self._inner.get_account(user_id, platform)

    def add_account(self, account: Account) -> bool:
        self.flush()
        return self._inner.add_account(account)

    def save_account(self, account: Account) -> None:
        self._enqueue([account])

    def save_accounts(self, accounts: Iterable[Account]) -> None:
        self._enqueue(list(accounts))

    def delete_account(self, user_id: str, platform: str) -> bool:
        self.flush()
        return self._inner.delete_account(user_id, platform)

    def list_accounts(self, platform: Optional[str] = None) -> List[Account]:
        self.flush()
        return self._inner.list_accounts(platform)

"""Module history: the bounded, most-recent-first execution history."""
#
# PURPOSE:
# Every command the gateway actually runs leaves an ExecutionRecord here so
# callers can audit what happened. The log is a fixed-size ring: once it is
# full, the oldest entries fall off the end.
#
# KEY CONCEPTS:
# - Newest first: index 0 is always the latest append
# - Bounded: len(history) <= capacity at all times
# - Thread-safe: one lock guards the whole list. It is only held for the
#   list mutation or copy, never while a command is running.
#

from __future__ import annotations

import logging
from threading import Lock
from typing import List, Tuple

from shellgate.engine.executor import ExecutionRecord

logger = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 100


class HistoryLog:
    """
    Fixed-capacity execution history shared by all concurrent requests.

    One instance per running server, handed explicitly to the gateway.
    """

    def __init__(self, capacity: int = MAX_HISTORY_SIZE):
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._entries: List[ExecutionRecord] = []
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, record: ExecutionRecord) -> None:
        """Insert a record at the front, dropping the oldest entries beyond capacity."""
        with self._lock:
            self._entries.insert(0, record)
            dropped = len(self._entries) - self._capacity
            if dropped > 0:
                del self._entries[self._capacity:]
        if dropped > 0:
            logger.debug(f"[history] Evicted {dropped} oldest entr{'y' if dropped == 1 else 'ies'}")

    def recent(self, limit: int = 0) -> List[ExecutionRecord]:
        """
        Return up to `limit` most recent records, newest first.

        A limit of zero or less, or one larger than the history, returns
        everything currently held. The result is a new list.
        """
        return self.snapshot(limit)[0]

    def snapshot(self, limit: int = 0) -> Tuple[List[ExecutionRecord], int]:
        """Like recent(), plus the total history size read under the same lock."""
        with self._lock:
            total = len(self._entries)
            if limit <= 0 or limit > total:
                limit = total
            return list(self._entries[:limit]), total

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

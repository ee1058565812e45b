"""
Querier scheduling.

QuerierQueue keeps queriers in a heap ordered by (last_update, name), with
an insertion sequence to keep ties stable. The polling driver pops the head,
sleeps for ``next_poll_delay``, polls it and pushes it back.
"""

import heapq
import itertools
from typing import Any, Iterable, List, Optional, Tuple

from sqlbridge.config import get_settings

from .table_querier import TableQuerier


class QuerierQueue:
    """Priority queue of queriers, least recently updated first."""

    def __init__(self, queriers: Iterable[TableQuerier] = ()):
        self._heap: List[Tuple[Any, str, int, TableQuerier]] = []
        self._sequence = itertools.count()
        for querier in queriers:
            self.push(querier)

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def push(self, querier: TableQuerier) -> None:
        # The key is captured at push time; re-push after close() to reorder
        heapq.heappush(
            self._heap, (querier.last_update, querier.name, next(self._sequence), querier)
        )

    def pop(self) -> TableQuerier:
        if not self._heap:
            raise IndexError("pop from an empty QuerierQueue")
        return heapq.heappop(self._heap)[-1]

    def peek(self) -> Optional[TableQuerier]:
        return self._heap[0][-1] if self._heap else None

    def next_poll_delay(self, now: float, poll_interval: Optional[float] = None) -> float:
        """
        Time to wait before the head querier is due.

        A querier is due ``poll_interval`` after its last update; 0 when the
        queue is empty or the head is already due. Without an explicit
        interval, ``poll_interval_ms`` from settings is used, in seconds.
        """
        head = self.peek()
        if head is None:
            return 0
        if poll_interval is None:
            poll_interval = get_settings().poll_interval_ms / 1000
        return max(0, head.last_update + poll_interval - now)


__all__ = ["QuerierQueue"]

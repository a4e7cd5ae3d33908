from __future__ import annotations

import threading
from typing import Generic, Iterable, List, TypeVar

T = TypeVar("T")


class SampleBuffer(Generic[T]):
    """Thread-safe accumulator drained as a whole by a single consumer.

    The lock only guards ``append`` and the swap inside ``drain``; callers
    must not hold it while doing I/O with the detached list.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: List[T] = []

    def append(self, items: Iterable[T]) -> None:
        items = list(items)
        if not items:
            return
        with self._lock:
            self._items.extend(items)

    def drain(self) -> List[T]:
        with self._lock:
            items, self._items = self._items, []
        return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

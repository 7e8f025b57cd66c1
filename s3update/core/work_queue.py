"""
Pop-only, thread-safe queue of pending work items
"""
import threading
from collections import deque
from typing import Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class WorkQueue(Generic[T]):
    """
    Filled once at construction, then only drained.

    take() never blocks: an empty queue means there is no more work, so
    workers stop instead of waiting. Each item is handed to exactly one
    caller.
    """

    def __init__(self, items: Iterable[T]):
        if items is None:
            raise ValueError("WorkQueue needs an iterable of items, got None")
        self._items = deque(items)
        self._lock = threading.Lock()

    def take(self) -> Optional[T]:
        """Remove and return the front item, or None if the queue is empty."""
        with self._lock:
            if self._items:
                return self._items.popleft()
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

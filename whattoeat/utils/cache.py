"""In-process memoization cache for keyword expansion and translation results.

Values are idempotent for a given key, so concurrent requests racing to fill
the same key are harmless: last writer wins. An empty or disabled cache only
costs extra remote calls, never different results.
"""

import threading
from collections import OrderedDict
from typing import Any, Callable, Awaitable, Hashable, Optional


class MemoCache:
    """Bounded LRU map guarded by a lock.

    Args:
        max_entries: Maximum number of keys kept. 0 disables caching.
    """

    def __init__(self, max_entries: int = 1024) -> None:
        self.max_entries = max_entries
        self._data: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                return None
            self._data.move_to_end(key)
            return self._data[key]

    def set(self, key: Hashable, value: Any) -> None:
        if self.max_entries <= 0:
            return
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)

    async def get_or_set(self, key: Hashable, compute: Callable[[], Awaitable[Any]]) -> tuple[Any, bool]:
        """Return (value, hit). On a miss, await compute() and store its result.

        The lock is not held while computing; two callers may compute the
        same key concurrently and the later write wins.
        """
        hit = self.get(key)
        if hit is not None:
            return hit, True
        value = await compute()
        if value is not None:
            self.set(key, value)
        return value, False

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

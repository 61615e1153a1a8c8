import time
from typing import Any, Callable
from cachetools import TTLCache

class TTLStore:
    """
    Thin abstraction over an in-process TTLCache.
    The timer is injectable so tests can move the clock instead of sleeping.
    """
    def __init__(self, ttl_seconds: float, timer: Callable[[], float] = time.time, maxsize: int = 16):
        self.ttl = ttl_seconds
        self.timer = timer
        self._data: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()

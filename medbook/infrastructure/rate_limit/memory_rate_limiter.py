import time
from typing import Dict, List

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """Sliding-window limiter for a single process.

    Keys whose window has emptied are dropped, both when they are next seen and
    on a periodic sweep, so the store only holds clients active in the last window.
    """

    def __init__(self, sweep_every: int = 1000) -> None:
        self._store: Dict[str, List[float]] = {}
        self._sweep_every = sweep_every
        self._calls = 0

    def __len__(self) -> int:
        return len(self._store)

    def _sweep(self, window_start: float) -> None:
        stale = [key for key, times in self._store.items() if not times or times[-1] <= window_start]
        for key in stale:
            del self._store[key]

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = time.time()
        window_start = now - window_seconds
        self._calls += 1
        if self._calls % self._sweep_every == 0:
            self._sweep(window_start)
        # prune
        times = [t for t in self._store.get(key, []) if t > window_start]
        if len(times) >= max_requests:
            if times:
                self._store[key] = times
            else:
                self._store.pop(key, None)
            return False
        times.append(now)
        self._store[key] = times
        return True

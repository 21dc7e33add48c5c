"""In-process admission control: N requests per caller per rolling window."""

import math
import time
from collections import deque
from collections.abc import Callable, Hashable

from lessonlab.errors import QuotaExceeded


class RollingWindowLimiter:
    """
    Per-key rolling window counter.

    State lives in this process only. Methods never await, so calls are
    atomic with respect to other coroutines on the same event loop.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        message: str | None = None,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._message = message
        self._hits: dict[Hashable, deque[float]] = {}

    def _prune(self, key: Hashable, now: float) -> deque[float]:
        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()
        return hits

    def remaining(self, key: Hashable) -> int:
        return max(0, self.max_requests - len(self._prune(key, self._clock())))

    def check(self, key: Hashable) -> None:
        """Raise QuotaExceeded if `key` is at its limit. Does not count a hit."""
        now = self._clock()
        hits = self._prune(key, now)
        if len(hits) >= self.max_requests:
            retry_after = math.ceil(hits[0] + self.window_seconds - now)
            raise QuotaExceeded(self._message, retry_after=max(retry_after, 1))

    def record(self, key: Hashable) -> None:
        now = self._clock()
        self._prune(key, now).append(now)

    def acquire(self, key: Hashable) -> None:
        """Check then count one hit."""
        self.check(key)
        self.record(key)

    def reset(self, key: Hashable | None = None) -> None:
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)

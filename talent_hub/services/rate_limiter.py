"""Fixed-window request admission control, keyed by client identifier."""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: int


class _Bucket:
    __slots__ = ("lock", "count", "reset_at", "retired")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.count = 0
        self.reset_at = 0
        self.retired = False


class RateLimiter:
    """Per-identifier fixed-window counter.

    One instance is shared by every request in the process. The read-check-
    increment on a bucket happens under that bucket's own lock, so requests for
    different identifiers never wait on each other. The map lock is only held to
    look up or create a bucket.
    """

    def __init__(self, limit: int = 100, window_ms: int = 60_000,
                 clock: Callable[[], int] = _monotonic_ms, prune_every: int = 1000):
        self.limit = limit
        self.window_ms = window_ms
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._map_lock = threading.Lock()
        self._prune_every = prune_every
        self._admits_since_prune = 0

    def _bucket(self, identifier: str) -> _Bucket:
        with self._map_lock:
            bucket = self._buckets.get(identifier)
            if bucket is None:
                bucket = self._buckets[identifier] = _Bucket()
            self._admits_since_prune += 1
            if self._admits_since_prune >= self._prune_every:
                self._admits_since_prune = 0
                self._prune_locked(self._clock())
            return bucket

    def admit(self, identifier: str, limit: Optional[int] = None,
              window_ms: Optional[int] = None) -> RateLimitDecision:
        limit = self.limit if limit is None else limit
        window_ms = self.window_ms if window_ms is None else window_ms
        while True:
            bucket = self._bucket(identifier)
            with bucket.lock:
                if bucket.retired:
                    # Pruned between lookup and lock; fetch the replacement.
                    continue
                now = self._clock()
                if bucket.count == 0 or now > bucket.reset_at:
                    bucket.count = 1
                    bucket.reset_at = now + window_ms
                    return RateLimitDecision(True, limit - 1, bucket.reset_at)
                if bucket.count >= limit:
                    return RateLimitDecision(False, 0, bucket.reset_at)
                bucket.count += 1
                return RateLimitDecision(True, limit - bucket.count, bucket.reset_at)

    def _prune_locked(self, now: int) -> None:
        pruned = 0
        for key, bucket in list(self._buckets.items()):
            if not bucket.lock.acquire(blocking=False):
                continue
            try:
                if bucket.count and now > bucket.reset_at:
                    bucket.retired = True
                    del self._buckets[key]
                    pruned += 1
            finally:
                bucket.lock.release()
        if pruned:
            logger.debug("Pruned %d expired rate-limit buckets; %d remain", pruned, len(self))

    def __len__(self) -> int:
        return len(self._buckets)

"""Per-author rate limiting for messages relayed to the MUD.

Each (MUD channel, author) pair must leave at least ``1000 / limit``
milliseconds between accepted messages. Rejected messages are discarded,
never queued.
"""

import time


# Cleanup kicks in once this many keys are tracked
CLEANUP_THRESHOLD = 100

# Entries older than this are evicted during cleanup
CLEANUP_WINDOW_MS = 10_000


def now_ms() -> float:
    return time.time() * 1000


class RateLimiter:
    """Minimum-interval throttle keyed by channel and author."""

    def __init__(
        self,
        messages_per_second: float = 10,
        cleanup_threshold: int = CLEANUP_THRESHOLD,
        cleanup_window_ms: float = CLEANUP_WINDOW_MS,
    ):
        if messages_per_second <= 0:
            raise ValueError("messages_per_second must be positive")

        self.messages_per_second = messages_per_second
        self.cleanup_threshold = cleanup_threshold
        self.cleanup_window_ms = cleanup_window_ms
        self._last_seen: dict[str, float] = {}

    @property
    def interval_ms(self) -> float:
        return 1000 / self.messages_per_second

    @staticmethod
    def make_key(channel: str, author: str) -> str:
        return f"{channel}-{author}"

    def allow(self, key: str, now: float | None = None) -> bool:
        """Check and record a message for ``key``.

        Args:
            key: Composite channel/author key
            now: Current time in milliseconds, defaults to the wall clock

        Returns:
            True if the message may be relayed
        """
        if now is None:
            now = now_ms()

        last = self._last_seen.get(key)
        if last is not None and now - last < self.interval_ms:
            return False

        self._last_seen[key] = now

        if len(self._last_seen) > self.cleanup_threshold:
            self._cleanup(now)

        return True

    def _cleanup(self, now: float):
        cutoff = now - self.cleanup_window_ms
        for key in [k for k, seen in self._last_seen.items() if seen < cutoff]:
            del self._last_seen[key]

    def __len__(self) -> int:
        return len(self._last_seen)

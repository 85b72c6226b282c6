"""In-memory cache with per-entry expiry."""
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """
    Key/value cache whose entries expire after a time-to-live.

    Constructed once and passed to whatever needs it. Safe to share between
    the worker threads of one enrichment run.
    """

    DEFAULT_TTL = 300  # seconds

    def __init__(self, default_ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        """
        Initialize cache.

        Args:
            default_ttl: TTL used when put() is given none
            clock: Time source in seconds (injectable for tests)
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None

            return value

    def put(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value for ttl seconds."""
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

"""In-process cache used in development and tests.

It can be told to fail on every call so the best-effort boundary can be
exercised without a broken Redis.
"""

import time

from storefront.cache.port import Cache


class CacheUnavailable(ConnectionError):
    """Raised by InMemoryCache while it is configured to fail."""


class InMemoryCache(Cache):
    """Dictionary-backed cache honouring TTLs."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self.failing: bool = False

    def configure(self, failing: bool) -> None:
        self.failing = failing

    def _check(self) -> None:
        if self.failing:
            raise CacheUnavailable("cache is unavailable")

    def get(self, key: str) -> str | None:
        self._check()
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        self._check()
        self._entries[key] = (value, self._clock() + seconds)

    def delete_by_prefix(self, prefix: str) -> int:
        self._check()
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def keys(self) -> list[str]:
        return sorted(self._entries)

"""Cache port (abstract interface) for read-path caching.

Values are opaque strings; callers serialize. Adapters may raise on
connectivity problems; ``storefront.cache.best_effort`` is the only place
that calls them and it never lets those errors escape.
"""

from abc import ABC, abstractmethod


class Cache(ABC):
    """Abstract key/value cache with expiry."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the cached value, or None when missing or expired."""
        ...

    @abstractmethod
    def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        """Store ``value`` under ``key`` for ``seconds``."""
        ...

    @abstractmethod
    def delete_by_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``; return how many went."""
        ...

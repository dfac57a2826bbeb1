"""Cache factory.

Provides get_cache() / set_cache() to swap implementations:
- RedisCache when REDIS_URL is configured
- InMemoryCache otherwise (development and tests)
"""

from storefront import config
from storefront.cache.port import Cache

_current_cache: Cache | None = None


def get_cache() -> Cache:
    """Return the active cache, building the configured one on first use."""
    global _current_cache
    if _current_cache is None:
        if config.REDIS_URL:
            from storefront.cache.redis_adapter import RedisCache

            _current_cache = RedisCache(config.REDIS_URL)
        else:
            from storefront.cache.memory_adapter import InMemoryCache

            _current_cache = InMemoryCache()
    return _current_cache


def set_cache(cache: Cache) -> None:
    """Override the active cache (useful for tests)."""
    global _current_cache
    _current_cache = cache


def reset_cache() -> None:
    """Reset to the configured default."""
    global _current_cache
    _current_cache = None

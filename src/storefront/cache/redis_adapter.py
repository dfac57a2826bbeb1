"""Redis-backed cache adapter."""

import redis

from storefront.cache.port import Cache

SCAN_BATCH = 500


class RedisCache(Cache):
    """Cache stored in Redis; prefix deletes walk the keyspace with SCAN."""

    def __init__(self, url: str, client: redis.Redis | None = None) -> None:
        self.client = client or redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )

    def get(self, key: str) -> str | None:
        return self.client.get(key)

    def set_with_ttl(self, key: str, value: str, seconds: int) -> None:
        self.client.setex(key, seconds, value)

    def delete_by_prefix(self, prefix: str) -> int:
        keys = list(self.client.scan_iter(match=f"{prefix}*", count=SCAN_BATCH))
        if not keys:
            return 0
        return self.client.delete(*keys)

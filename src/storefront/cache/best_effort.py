"""Best-effort cache calls.

Every cache interaction in the storefront goes through these helpers. A
cache failure is logged and treated as a miss; it never fails or delays
the request that triggered it.
"""

import structlog

from storefront.cache import get_cache

logger = structlog.get_logger(__name__)

PRODUCT_LIST_PREFIX = "products:"
PRODUCT_CARD_PREFIX = "product:"


def product_key_prefix(slug: str) -> str:
    return f"{PRODUCT_CARD_PREFIX}{slug}:"


def cache_get(key: str) -> str | None:
    try:
        return get_cache().get(key)
    except Exception as exc:
        logger.warning("cache_get_failed", key=key, error=str(exc))
        return None


def cache_set(key: str, value: str, seconds: int) -> None:
    try:
        get_cache().set_with_ttl(key, value, seconds)
    except Exception as exc:
        logger.warning("cache_set_failed", key=key, error=str(exc))


def cache_delete_prefix(prefix: str) -> int:
    try:
        return get_cache().delete_by_prefix(prefix)
    except Exception as exc:
        logger.warning("cache_delete_failed", prefix=prefix, error=str(exc))
        return 0


def invalidate_products(*slugs: str) -> None:
    """Drop cached listings, plus the cached cards of the given products."""
    removed = cache_delete_prefix(PRODUCT_LIST_PREFIX)
    for slug in slugs:
        if slug:
            removed += cache_delete_prefix(product_key_prefix(slug))
    logger.debug("product_cache_invalidated", slugs=list(slugs), removed=removed)


def invalidate_all_products() -> None:
    """Drop every cached listing and card; store-wide changes touch them all."""
    removed = cache_delete_prefix(PRODUCT_LIST_PREFIX) + cache_delete_prefix(PRODUCT_CARD_PREFIX)
    logger.debug("product_cache_cleared", removed=removed)

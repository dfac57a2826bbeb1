"""Runtime knobs read from the environment.

Infrastructure (databases, brokers, event store) is configured per
PROTEAN_ENV in ``domain.toml``; the values here are storefront policy.
"""

import os

CURRENCY = os.getenv("STOREFRONT_CURRENCY", "AMD")

# Carts untouched for this long are treated as expired
CART_TTL_DAYS = int(os.getenv("CART_TTL_DAYS", "30"))

PRODUCT_CACHE_TTL = int(os.getenv("PRODUCT_CACHE_TTL", "300"))

# When unset, an in-process cache is used
REDIS_URL = os.getenv("REDIS_URL")

PROBLEM_TYPE_BASE = os.getenv("PROBLEM_TYPE_BASE", "https://api.shop.am/problems")

ORDER_NUMBER_MAX_ATTEMPTS = int(os.getenv("ORDER_NUMBER_MAX_ATTEMPTS", "5"))

DEFAULT_PAYMENT_PROVIDER = os.getenv("DEFAULT_PAYMENT_PROVIDER", "idram")

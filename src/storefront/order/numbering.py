"""Human-facing order numbers: ``YYMMDD-NNNNN``."""

import random
from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from storefront import config
from storefront.order.order import Order
from storefront.shared.exceptions import ConflictError

logger = structlog.get_logger(__name__)

_system_random = random.SystemRandom()


def generate_order_number(now=None, rng=None) -> str:
    now = now or datetime.now(UTC)
    rng = rng or _system_random
    return f"{now:%y%m%d}-{rng.randrange(100000):05d}"


def number_taken(number: str) -> bool:
    repo = current_domain.repository_for(Order)
    return bool(repo._dao.query.filter(number=number).all().items)


def find_order_by_number(number: str):
    repo = current_domain.repository_for(Order)
    orders = repo._dao.query.filter(number=number).all().items
    return orders[0] if orders else None


def allocate_order_number(now=None, rng=None, attempts=None) -> str:
    """Generate numbers until one is unused, giving up after ``attempts`` tries."""
    attempts = attempts or config.ORDER_NUMBER_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        number = generate_order_number(now, rng)
        if not number_taken(number):
            return number
        logger.warning("order_number_collision", number=number, attempt=attempt)

    raise ConflictError({"number": [f"Could not allocate a unique order number after {attempts} attempts"]})

"""Storefront bounded context: attribute catalog, products and variants,
pricing, shopping carts, checkout and orders.

Checkout reads live catalog state and writes the order, the stock holds and
the cart conversion in a single unit of work, which is why all of it lives
in one domain.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")

"""Live catalog lookups shared by the cart and checkout."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.product.product import Product


def find_sellable(product_id, variant_id, loaded=None):
    """Return ``(product, variant)`` for a variant that can be bought right now.

    ``loaded`` memoizes products by id so a multi-line checkout reads each
    product once and later writes go to the same instance. Missing products,
    deleted or unpublished products, and missing or unpublished variants all
    raise ObjectNotFoundError.
    """
    loaded = {} if loaded is None else loaded
    key = str(product_id)
    if key not in loaded:
        try:
            loaded[key] = current_domain.repository_for(Product).get(key)
        except ObjectNotFoundError:
            loaded[key] = None

    product = loaded[key]
    variant = product.find_variant(variant_id) if product is not None else None
    if product is None or not product.is_sellable(variant):
        raise ObjectNotFoundError(f"Variant {variant_id} of product {product_id} is not available")
    return product, variant

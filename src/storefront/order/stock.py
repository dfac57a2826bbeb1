"""Stock follow-ups for an order's lines.

The order records where its hold stands (``stock_state``); the products
carry the actual numbers. Both sides change in the caller's unit of work.
"""

import structlog
from protean.utils.globals import current_domain

from storefront.order.order import StockState
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


def _apply(order, action, loaded=None):
    """Run ``action`` on every line's variant.

    A variant removed by a later catalog edit no longer carries any stock
    numbers to adjust; its line is skipped and logged.
    """
    loaded = {} if loaded is None else loaded
    repo = current_domain.repository_for(Product)
    for item in order.items:
        key = str(item.product_id)
        if key not in loaded:
            loaded[key] = repo.get(key)

        product = loaded[key]
        if product.find_variant(item.variant_id) is None:
            logger.warning(
                "order_stock_variant_missing",
                order_id=str(order.id),
                product_id=key,
                variant_id=str(item.variant_id),
                action=action,
            )
            continue
        getattr(product, action)(item.variant_id, item.quantity, order.id)

    for product in loaded.values():
        repo.add(product)
    return loaded


def reserve_order_stock(order, loaded=None):
    """Put every line of a freshly placed order on hold."""
    return _apply(order, "reserve_stock", loaded)


def commit_order_stock(order, loaded=None):
    """Turn the order's hold into a deduction. No-op unless it is still held."""
    if order.stock_state != StockState.RESERVED.value:
        return None
    loaded = _apply(order, "commit_stock", loaded)
    order.mark_stock(StockState.COMMITTED.value)
    return loaded


def release_order_stock(order, loaded=None):
    """Give back whatever the order still holds or already took."""
    if order.stock_state == StockState.RESERVED.value:
        loaded = _apply(order, "release_stock", loaded)
    elif order.stock_state == StockState.COMMITTED.value:
        loaded = _apply(order, "restore_stock", loaded)
    else:
        return None
    order.mark_stock(StockState.RELEASED.value)
    return loaded

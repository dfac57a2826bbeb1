"""Clears cached product cards after stock changes are committed.

Checkout and order updates leave cache invalidation to these handlers,
which run once the unit of work that moved the stock has committed.
"""

from protean import handle
from protean.utils.globals import current_domain

from storefront.cache.best_effort import invalidate_products
from storefront.domain import storefront
from storefront.product.events import StockCommitted, StockReleased, StockReserved, StockRestored
from storefront.product.product import Product


@storefront.event_handler(part_of=Product)
class ProductStockCacheHandler:
    def _invalidate(self, event):
        product = current_domain.repository_for(Product).get(event.product_id)
        invalidate_products(product.slug)

    @handle(StockReserved)
    def on_stock_reserved(self, event: StockReserved) -> None:
        self._invalidate(event)

    @handle(StockCommitted)
    def on_stock_committed(self, event: StockCommitted) -> None:
        self._invalidate(event)

    @handle(StockReleased)
    def on_stock_released(self, event: StockReleased) -> None:
        self._invalidate(event)

    @handle(StockRestored)
    def on_stock_restored(self, event: StockRestored) -> None:
        self._invalidate(event)

"""Product-specific discount — command and handler."""

import structlog
from protean import handle
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from storefront.cache.best_effort import invalidate_products
from storefront.domain import storefront
from storefront.product.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class SetProductDiscount:
    product_id = Identifier(required=True)
    discount_percent = Float(required=True, min_value=0.0, max_value=100.0)


@storefront.command_handler(part_of=Product)
class ProductDiscountHandler:
    @handle(SetProductDiscount)
    def set_product_discount(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_discount(command.discount_percent)
        repo.add(product)

        invalidate_products(product.slug)
        logger.info(
            "product_discount_set",
            product_id=str(product.id),
            discount_percent=command.discount_percent,
        )
        return command.discount_percent
